"""
New-entry detection and moderation submissions.

When a user types a value that matches none of the offered suggestions,
the value is sent to the moderation queue as a user-submitted entry.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .config import SubmissionConfig
from .gateway import SearchGateway
from .models import (
    AutocompleteSuggestion,
    FieldType,
    SubmissionReceipt,
    UserSubmittedEntry,
)

logger = logging.getLogger(__name__)


def is_new_entry(value: str, suggestions: Iterable[AutocompleteSuggestion]) -> bool:
    """True if value is non-blank and matches no suggestion (case/space-insensitive)."""
    if not value.strip():
        return False
    return not any(s.matches(value) for s in suggestions)


class SubmissionReporter:
    """Builds user-submitted entries and posts them for moderation."""

    def __init__(self, gateway: SearchGateway, config: SubmissionConfig | None = None):
        self.gateway = gateway
        self.config = config or SubmissionConfig()

    def build_entry(
        self,
        field_type: FieldType,
        value: str,
        context: dict[str, Any] | None = None,
    ) -> UserSubmittedEntry:
        return UserSubmittedEntry(
            field_type=field_type,
            entered_value=value.strip(),
            context=dict(context or {}),
            user_id=self.config.user_id,
            session_id=self.config.session_id,
        )

    async def submit(
        self,
        field_type: FieldType,
        value: str,
        context: dict[str, Any] | None = None,
    ) -> SubmissionReceipt:
        """
        Submit a value for moderation.

        Raises:
            GatewayError: If the submission was not accepted
        """
        entry = self.build_entry(field_type, value, context)
        logger.info(f"Submitting new {field_type.value} entry: {entry.entered_value!r}")
        receipt = await self.gateway.submit_user_entry(entry)
        logger.info(f"Submission {receipt.id} queued with status {receipt.status.value}")
        return receipt
