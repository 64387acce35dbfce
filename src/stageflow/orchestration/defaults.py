"""Built-in research workflow definitions.

The default pipeline runs six stages in order and pauses for review after
experiment design, the paper draft and the final formatting pass.
Methodology-specific variants adjust the stages and gates.
"""

import logging
from typing import Any, Dict, List

from ..core.models import WorkflowDefinition

logger = logging.getLogger(__name__)

RESEARCH_AGENT_IDS = [
    "idea-building",
    "literature-search",
    "experiment-design",
    "data-analysis",
    "paper-writing",
    "formatting-review",
]

DEFAULT_APPROVAL_GATES = ["experiment-design", "paper-writing", "formatting-review"]

LITERATURE_BASED_METHODS = [
    # Systematic and quantitative reviews
    "systematic-review",
    "meta-analysis",
    "rapid-review",
    "umbrella-review",
    # Qualitative reviews
    "scoping-review",
    "narrative-review",
    "realist-review",
    "critical-review",
    "qualitative-systematic-review",
    # Integrative reviews
    "integrative-review",
]

QUANTITATIVE_METHODS = [
    "survey",
    "survey-research",
    "experimental",
    "experimental-research",
    "correlational",
    "correlational-research",
    "quasi-experimental",
    "longitudinal",
    "longitudinal-study",
]

QUALITATIVE_METHODS = [
    "grounded-theory",
    "phenomenology",
    "case-study",
    "ethnography",
    "narrative",
    "narrative-research",
    "action-research",
    "content-analysis",
]

MIXED_METHODS = [
    "convergent-mixed",
    "explanatory-sequential",
    "exploratory-sequential",
    "sequential-explanatory",
    "sequential-exploratory",
    "convergent-parallel",
    "embedded-design",
    "delphi-method",
]

# name, PRISMA compliance, quality assessment, meta-analysis
LITERATURE_REVIEW_SETTINGS: Dict[str, Dict[str, Any]] = {
    "systematic-review": {
        "name": "Systematic Review",
        "prismaCompliance": True,
        "qualityAssessment": True,
        "metaAnalysis": False,
    },
    "meta-analysis": {
        "name": "Meta-Analysis",
        "prismaCompliance": True,
        "qualityAssessment": True,
        "metaAnalysis": True,
    },
    "scoping-review": {
        "name": "Scoping Review",
        "prismaCompliance": True,
        "qualityAssessment": False,
        "metaAnalysis": False,
    },
    "narrative-review": {
        "name": "Narrative Review",
        "prismaCompliance": False,
        "qualityAssessment": False,
        "metaAnalysis": False,
    },
    "integrative-review": {
        "name": "Integrative Review",
        "prismaCompliance": False,
        "qualityAssessment": True,
        "metaAnalysis": False,
    },
    "rapid-review": {
        "name": "Rapid Review",
        "prismaCompliance": True,
        "qualityAssessment": True,
        "metaAnalysis": False,
    },
    "umbrella-review": {
        "name": "Umbrella Review",
        "prismaCompliance": True,
        "qualityAssessment": True,
        "metaAnalysis": True,
    },
    "realist-review": {
        "name": "Realist Review",
        "prismaCompliance": False,
        "qualityAssessment": True,
        "metaAnalysis": False,
    },
    "critical-review": {
        "name": "Critical Review",
        "prismaCompliance": False,
        "qualityAssessment": False,
        "metaAnalysis": False,
    },
    "qualitative-systematic-review": {
        "name": "Qualitative Systematic Review",
        "prismaCompliance": True,
        "qualityAssessment": True,
        "metaAnalysis": False,
    },
}


def _members(agent_ids: List[str]) -> List[Dict[str, str]]:
    return [{"id": agent_id} for agent_id in agent_ids]


def default_research_workflow() -> WorkflowDefinition:
    return WorkflowDefinition.model_validate({
        "id": "default-research",
        "name": "Default Research Workflow",
        "type": "sequential",
        "agents": _members(RESEARCH_AGENT_IDS),
        "config": {
            "continueOnError": False,
            "approvalGates": list(DEFAULT_APPROVAL_GATES),
        },
    })


def literature_review_workflow(methodology_id: str) -> WorkflowDefinition:
    """Review workflow for literature-based methods; skips experiment design."""
    settings = LITERATURE_REVIEW_SETTINGS.get(methodology_id, {
        "name": "Literature Review",
        "prismaCompliance": False,
        "qualityAssessment": True,
        "metaAnalysis": False,
    })
    agent_ids = [agent_id for agent_id in RESEARCH_AGENT_IDS if agent_id != "experiment-design"]

    return WorkflowDefinition.model_validate({
        "id": "literature-review",
        "name": f"Literature Review Workflow ({settings['name']})",
        "type": "sequential",
        "agents": _members(agent_ids),
        "config": {
            "continueOnError": False,
            "approvalGates": [
                "idea-building",
                "literature-search",
                "data-analysis",
                "paper-writing",
                "formatting-review",
            ],
            "methodologySpecific": {
                "type": "literature-review",
                "subtype": methodology_id,
                **settings,
                "skippedAgents": ["experiment-design"],
                "focusOnLiteratureSearch": True,
            },
        },
    })


def quantitative_workflow() -> WorkflowDefinition:
    return WorkflowDefinition.model_validate({
        "id": "quantitative-research",
        "name": "Quantitative Research Workflow",
        "type": "sequential",
        "agents": _members(RESEARCH_AGENT_IDS),
        "config": {
            "continueOnError": False,
            "approvalGates": list(DEFAULT_APPROVAL_GATES),
            "methodologySpecific": {
                "type": "quantitative",
                "statisticalAnalysis": True,
            },
        },
    })


def qualitative_workflow() -> WorkflowDefinition:
    return WorkflowDefinition.model_validate({
        "id": "qualitative-research",
        "name": "Qualitative Research Workflow",
        "type": "sequential",
        "agents": _members(RESEARCH_AGENT_IDS),
        "config": {
            "continueOnError": False,
            "approvalGates": list(DEFAULT_APPROVAL_GATES),
            "methodologySpecific": {
                "type": "qualitative",
                "iterativeAnalysis": True,
                "trustworthiness": ["credibility", "transferability", "dependability", "confirmability"],
            },
        },
    })


def mixed_methods_workflow() -> WorkflowDefinition:
    return WorkflowDefinition.model_validate({
        "id": "mixed-methods-research",
        "name": "Mixed Methods Research Workflow",
        "type": "hybrid",
        "agents": _members(RESEARCH_AGENT_IDS),
        "config": {
            "continueOnError": False,
            "approvalGates": ["experiment-design", "data-analysis", "paper-writing", "formatting-review"],
            "methodologySpecific": {
                "type": "mixed-methods",
                "integrationPoint": "data-analysis",
            },
        },
    })


def workflow_for_methodology(methodology_id: str) -> WorkflowDefinition:
    """Pick the workflow definition matching a research methodology.

    Unknown methodologies fall back to the default research workflow.
    """
    if methodology_id in LITERATURE_BASED_METHODS:
        logger.info(f"Literature-based methodology '{methodology_id}' -> literature review workflow")
        return literature_review_workflow(methodology_id)

    if methodology_id in QUANTITATIVE_METHODS:
        workflow = quantitative_workflow()
    elif methodology_id in QUALITATIVE_METHODS:
        workflow = qualitative_workflow()
    elif methodology_id in MIXED_METHODS:
        workflow = mixed_methods_workflow()
    else:
        logger.warning(f"No specific workflow for methodology '{methodology_id}', using default")
        return default_research_workflow()

    logger.info(f"Selected workflow for methodology '{methodology_id}': {workflow.id}")
    return workflow
