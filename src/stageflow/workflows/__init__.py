"""Workflow execution strategies."""

from .base import BaseWorkflow, Workflow, merge_modifications
from .hybrid import HybridWorkflow
from .loop import DEFAULT_MAX_ITERATIONS, LoopWorkflow, TerminationCondition
from .nested import WorkflowAgent
from .parallel import ParallelWorkflow
from .sequential import SequentialWorkflow

__all__ = [
    "BaseWorkflow",
    "DEFAULT_MAX_ITERATIONS",
    "HybridWorkflow",
    "LoopWorkflow",
    "ParallelWorkflow",
    "SequentialWorkflow",
    "TerminationCondition",
    "Workflow",
    "WorkflowAgent",
    "merge_modifications",
]
