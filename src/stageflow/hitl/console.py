"""Console-based intervention handler for CLI usage."""

import asyncio
import json
from typing import Callable, Optional

from ..core.models import ApprovalRequest, FeedbackContext, HumanResponse, Notification
from .intervention import InterventionHandler

_ICONS = {
    "info": "ℹ",
    "warning": "⚠",
    "error": "✗",
    "success": "✓",
}


class ConsoleInterventionHandler(InterventionHandler):
    """Prompts on stdout and reads answers from stdin.

    Blocking ``input`` calls run in a worker thread so the event loop keeps
    serving other tasks while the operator types.
    """

    def __init__(self, input_fn: Optional[Callable[[str], str]] = None, print_fn: Callable[..., None] = print):
        self._input = input_fn or input
        self._print = print_fn

    async def _ask(self, prompt: str) -> str:
        answer = await asyncio.to_thread(self._input, prompt)
        return answer.strip()

    async def handle_approval(self, approval_id: str, request: ApprovalRequest) -> HumanResponse:
        self._print("\n" + "=" * 60)
        self._print(f"APPROVAL REQUIRED: {request.summary}")
        self._print("=" * 60)
        self._print(f"Request: {approval_id}")
        self._print(f"Agent: {request.agent_id}")
        self._print(f"Stage: {request.stage.value}")
        self._print(f"Type: {request.type}")
        self._print("\nContent:")
        self._print(json.dumps(request.content, indent=2, default=str, ensure_ascii=False))

        if request.options:
            self._print("\nOptions:")
            for i, option in enumerate(request.options, 1):
                self._print(f"  {i}. {option.label}: {option.description}")

        answer = (await self._ask("\nApprove? (yes/no/edit): ")).lower()

        if answer in ("yes", "y"):
            return HumanResponse(approved=True)

        if answer in ("edit", "e"):
            feedback = await self._ask("Enter modifications (JSON): ")
            try:
                modifications = json.loads(feedback)
            except json.JSONDecodeError:
                return HumanResponse(approved=True, feedback=feedback)
            if not isinstance(modifications, dict):
                return HumanResponse(approved=True, feedback=feedback)
            return HumanResponse(approved=True, feedback=feedback, modifications=modifications)

        reason = await self._ask("Rejection reason: ")
        return HumanResponse(approved=False, feedback=reason)

    async def collect_feedback(self, prompt: str, context: FeedbackContext) -> str:
        self._print("\n" + "-" * 40)
        self._print(f"Feedback requested from {context.agent_id}")
        self._print("-" * 40)
        return await self._ask(f"{prompt}: ")

    async def notify(self, notification: Notification) -> None:
        icon = _ICONS.get(notification.type, "i")
        self._print(f"\n[{icon}] {notification.title}: {notification.message}")
