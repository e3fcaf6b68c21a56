"""Tests for new-entry detection and submission reporting."""

from unittest.mock import AsyncMock

import pytest

from geosearch.config import SubmissionConfig
from geosearch.gateway import GatewayError
from geosearch.models import (
    AutocompleteSuggestion,
    FieldType,
    SubmissionReceipt,
    SubmissionStatus,
    SuggestionType,
)
from geosearch.submissions import SubmissionReporter, is_new_entry


class TestIsNewEntry:
    """Test the reconciliation rule."""

    def test_case_insensitive_match(self, verified):
        assert is_new_entry("bakery", [verified("Bakery")]) is False

    def test_whitespace_trimmed(self, verified):
        assert is_new_entry("  Bakery  ", [verified("Bakery")]) is False

    def test_unmatched(self, verified):
        assert is_new_entry("Patisserie", [verified("Bakery")]) is True

    def test_no_suggestions(self):
        assert is_new_entry("Patisserie", []) is True

    def test_blank(self):
        assert is_new_entry("  ", []) is False

    def test_label_does_not_count(self):
        """Should compare against the canonical value, not the label."""
        suggestion = AutocompleteSuggestion(
            value="Bakery", label="Bakeries & Cakes", type=SuggestionType.VERIFIED
        )
        assert is_new_entry("Bakeries & Cakes", [suggestion]) is True


class TestSubmissionReporter:
    """Test SubmissionReporter."""

    def test_build_entry(self):
        reporter = SubmissionReporter(AsyncMock(), SubmissionConfig(user_id="u1", session_id="s1"))
        entry = reporter.build_entry(FieldType.CITY, "  Guisborough ", {"region": "North Yorkshire"})

        assert entry.entered_value == "Guisborough"
        assert entry.user_id == "u1"
        assert entry.session_id == "s1"
        assert entry.context == {"region": "North Yorkshire"}
        assert entry.status == SubmissionStatus.PENDING

    @pytest.mark.asyncio
    async def test_submit(self):
        gateway = AsyncMock()
        gateway.submit_user_entry.return_value = SubmissionReceipt(
            id="sub-9", status=SubmissionStatus.PENDING, message="Queued"
        )
        reporter = SubmissionReporter(gateway)

        receipt = await reporter.submit(FieldType.STREET, "Borough Road")

        assert receipt.id == "sub-9"
        entry = gateway.submit_user_entry.await_args.args[0]
        assert entry.field_type == FieldType.STREET
        assert entry.user_id == "anonymous"

    @pytest.mark.asyncio
    async def test_submit_failure_propagates(self):
        gateway = AsyncMock()
        gateway.submit_user_entry.side_effect = GatewayError("Submission failed")
        reporter = SubmissionReporter(gateway)

        with pytest.raises(GatewayError):
            await reporter.submit(FieldType.POSTCODE, "TS1 3LA")
