"""Hybrid workflow: a sequential spine whose members may be whole workflows."""

from .sequential import SequentialWorkflow


class HybridWorkflow(SequentialWorkflow):
    """Sequential composition of agents and nested workflows.

    Nested workflows take part through :class:`~stageflow.workflows.nested.WorkflowAgent`.
    """

    type = "hybrid"
