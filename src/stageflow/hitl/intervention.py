"""Human-in-the-loop intervention manager.

The manager is the runtime side of approval gating. It:
- Delegates approval and feedback requests to a pluggable handler (UI, CLI, API)
- Tracks every approval request as a pending or resolved record
- Enforces approval timeouts using the gate's timeout behavior
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import uuid4

from ..core.errors import InterventionError
from ..core.models import (
    ApprovalRequest,
    FeedbackContext,
    HumanResponse,
    Notification,
)
from .gates import ApprovalGateRegistry, TimeoutBehavior

logger = logging.getLogger(__name__)

ApprovalStatus = Literal["pending", "approved", "rejected", "error", "cancelled"]


class InterventionHandler(ABC):
    """Connects the manager to a human (UI, CLI or API)."""

    @abstractmethod
    async def handle_approval(self, approval_id: str, request: ApprovalRequest) -> HumanResponse:
        """Ask the human to approve or reject ``request``."""

    @abstractmethod
    async def collect_feedback(self, prompt: str, context: FeedbackContext) -> str:
        """Collect free-form feedback."""

    async def notify(self, notification: Notification) -> None:
        """Deliver a notification. Optional; ignored by default."""


@dataclass
class PendingApproval:
    """Audit record of one approval request."""

    id: str
    request: ApprovalRequest
    status: ApprovalStatus = "pending"
    response: Optional[HumanResponse] = None
    error: Optional[BaseException] = None
    timed_out: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    resolved_at: Optional[datetime] = None


class InterventionManager:
    """Coordinates approval requests, feedback collection and notifications.

    Satisfies the HITL interface consumed by workflows.
    """

    def __init__(
        self,
        handler: Optional[InterventionHandler] = None,
        gates: Optional[ApprovalGateRegistry] = None,
        auto_approve: bool = False,
    ):
        """Initialize the intervention manager.

        Args:
            handler: Handler that talks to the human
            gates: Gate registry used to look up timeout settings
            auto_approve: Approve everything immediately (test mode)
        """
        self.handler = handler
        self.gates = gates or ApprovalGateRegistry()
        self.auto_approve = auto_approve
        self._approvals: Dict[str, PendingApproval] = {}

    def set_handler(self, handler: InterventionHandler) -> None:
        self.handler = handler

    def set_auto_approve(self, enabled: bool) -> None:
        self.auto_approve = enabled

    async def request_approval(self, request: ApprovalRequest) -> HumanResponse:
        """Request human approval at a checkpoint.

        Args:
            request: What needs approval

        Returns:
            The human decision, or the timeout decision when the wait expires

        Raises:
            InterventionError: If no handler is configured
        """
        approval_id = str(uuid4())

        if self.auto_approve:
            logger.debug(f"Auto-approving request from {request.agent_id}")
            return HumanResponse(approved=True)

        if self.handler is None:
            raise InterventionError("No intervention handler configured", approval_id=approval_id)

        record = PendingApproval(id=approval_id, request=request)
        self._approvals[approval_id] = record
        logger.info(f"Approval {approval_id} requested by agent {request.agent_id}")

        timeout, behavior = self._timeout_policy(request)

        try:
            response = await self._await_decision(record, timeout, behavior)
        except asyncio.CancelledError as e:
            record.status = "cancelled"
            record.error = e
            record.resolved_at = datetime.utcnow()
            logger.warning(f"Approval {approval_id} cancelled while waiting for a decision")
            raise
        except Exception as e:
            record.status = "error"
            record.error = e
            record.resolved_at = datetime.utcnow()
            logger.error(f"Approval {approval_id} failed: {e}")
            raise

        record.status = "approved" if response.approved else "rejected"
        record.response = response
        record.resolved_at = datetime.utcnow()
        logger.info(f"Approval {approval_id} {record.status}")
        return response

    def _timeout_policy(self, request: ApprovalRequest):
        gate = self.gates.get(request.agent_id)
        timeout = request.timeout
        if timeout is None and gate is not None:
            timeout = gate.auto_approve_after
        behavior: TimeoutBehavior = gate.timeout_behavior if gate is not None else "reject"
        return timeout, behavior

    async def _await_decision(
        self,
        record: PendingApproval,
        timeout: Optional[float],
        behavior: TimeoutBehavior,
    ) -> HumanResponse:
        task = asyncio.ensure_future(self.handler.handle_approval(record.id, record.request))
        try:
            if timeout is None:
                return await task

            try:
                return await asyncio.wait_for(asyncio.shield(task), timeout)
            except asyncio.TimeoutError:
                record.timed_out = True
                if behavior == "pause":
                    logger.warning(f"Approval {record.id} timed out after {timeout}s; waiting for a decision")
                    return await task

                task.cancel()
                logger.warning(f"Approval {record.id} timed out after {timeout}s; applying '{behavior}'")
                return HumanResponse(
                    approved=behavior == "approve",
                    feedback=f"No decision within {timeout} seconds",
                )
        except asyncio.CancelledError:
            # The shielded handler task would otherwise outlive the caller.
            task.cancel()
            raise

    async def collect_feedback(self, prompt: str, context: FeedbackContext) -> str:
        if self.auto_approve:
            return "Auto-approved feedback"

        if self.handler is None:
            raise InterventionError("No intervention handler configured")

        return await self.handler.collect_feedback(prompt, context)

    async def notify(self, notification: Notification) -> None:
        """Best-effort notification; a missing handler is a no-op."""
        if self.handler is not None:
            await self.handler.notify(notification)

    def get_pending_approvals(self) -> List[PendingApproval]:
        return [record for record in self._approvals.values() if record.status == "pending"]

    def get_history(self) -> List[PendingApproval]:
        return list(self._approvals.values())

    def clear_history(self) -> None:
        self._approvals.clear()
