"""Orchestration module: the workflow engine and built-in workflow definitions."""

from .defaults import (
    default_research_workflow,
    literature_review_workflow,
    mixed_methods_workflow,
    qualitative_workflow,
    quantitative_workflow,
    workflow_for_methodology,
)
from .engine import WorkflowEngine

__all__ = [
    "WorkflowEngine",
    "default_research_workflow",
    "literature_review_workflow",
    "mixed_methods_workflow",
    "qualitative_workflow",
    "quantitative_workflow",
    "workflow_for_methodology",
]
