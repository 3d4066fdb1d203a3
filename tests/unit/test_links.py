"""
Unit tests for action link parsing.

Tests verify:
- mode/oobCode extraction
- email/name recovery from a nested continueUrl
- malformed input never raises
"""

from urllib.parse import quote

import pytest

from src.domain.links import ActionRequest, build_continue_url, parse_action_link
from src.domain.ports import ActionMode


class TestParseActionLink:
    """Tests for parse_action_link()."""

    def test_verify_email_link(self) -> None:
        """verifyEmail mode and oobCode are extracted."""
        request = parse_action_link("mode=verifyEmail&oobCode=ABC123")

        assert request.mode == ActionMode.VERIFY_EMAIL
        assert request.action_code == "ABC123"
        assert request.is_actionable

    def test_reset_password_link(self) -> None:
        """resetPassword mode is recognized."""
        request = parse_action_link("?mode=resetPassword&oobCode=XYZ")

        assert request.mode == ActionMode.RESET_PASSWORD
        assert request.action_code == "XYZ"

    def test_leading_question_mark_is_ignored(self) -> None:
        """Query string may be passed with its leading '?'."""
        assert parse_action_link("?mode=verifyEmail&oobCode=A").action_code == "A"

    @pytest.mark.parametrize("mode", ["recoverEmail", "signIn", "VERIFYEMAIL", ""])
    def test_unsupported_mode_is_unknown(self, mode: str) -> None:
        """Any mode other than the two supported ones maps to UNKNOWN."""
        request = parse_action_link(f"mode={mode}&oobCode=ABC")

        assert request.mode == ActionMode.UNKNOWN
        assert request.raw_mode == mode
        assert not request.is_actionable

    def test_missing_code_is_not_actionable(self) -> None:
        """A link without oobCode yields an empty action code."""
        request = parse_action_link("mode=verifyEmail")

        assert request.action_code == ""
        assert not request.is_actionable

    def test_direct_email_and_name(self) -> None:
        """email and name directly on the link are used as hints."""
        request = parse_action_link("mode=verifyEmail&oobCode=A&email=a%40b.com&name=Ada")

        assert request.email == "a@b.com"
        assert request.display_name == "Ada"

    def test_continue_url_hints(self) -> None:
        """email and name are recovered from the nested continueUrl."""
        continue_url = "https://app.example.com/email-verified?email=ada%40example.com&name=Ada+Lovelace"
        query = f"mode=verifyEmail&oobCode=A&continueUrl={quote(continue_url, safe='')}"

        request = parse_action_link(query)

        assert request.email == "ada@example.com"
        assert request.display_name == "Ada Lovelace"

    def test_continue_url_overrides_direct_hints(self) -> None:
        """Hints inside continueUrl win over direct parameters."""
        continue_url = "https://app.example.com/x?email=inner%40example.com"
        query = (
            f"mode=verifyEmail&oobCode=A&email=outer%40example.com&name=Outer"
            f"&continueUrl={quote(continue_url, safe='')}"
        )

        request = parse_action_link(query)

        assert request.email == "inner@example.com"
        assert request.display_name == "Outer"

    def test_continue_url_without_query(self) -> None:
        """A continueUrl without its own query string leaves hints empty."""
        request = parse_action_link("mode=verifyEmail&oobCode=A&continueUrl=https%3A%2F%2Fx.com%2F")

        assert request.email == ""
        assert request.display_name == ""

    @pytest.mark.parametrize(
        "query",
        [
            "",
            "&&&",
            "%%%",
            "mode=verifyEmail&oobCode=A&continueUrl=http%3A%2F%2F%5B::1",
            "continueUrl=%E0%A4%A",
        ],
    )
    def test_malformed_input_never_raises(self, query: str) -> None:
        """Parsing always returns an ActionRequest."""
        request = parse_action_link(query)
        assert isinstance(request, ActionRequest)

    def test_request_is_immutable(self) -> None:
        """ActionRequest cannot be modified after parsing."""
        request = parse_action_link("mode=verifyEmail&oobCode=A")
        with pytest.raises(AttributeError):
            request.action_code = "B"  # type: ignore[misc]

    def test_code_prefix_hides_full_code(self) -> None:
        """Only a short prefix of the code is exposed for logging."""
        request = parse_action_link("mode=verifyEmail&oobCode=0123456789ABCDEF")
        assert request.code_prefix == "01234567..."


class TestBuildContinueUrl:
    """Tests for build_continue_url()."""

    def test_builds_landing_url_with_hints(self) -> None:
        """email and name are encoded into the landing page's query."""
        url = build_continue_url("https://app.example.com/", "/email-verified", "a@b.com", "Ada L")
        assert url == "https://app.example.com/email-verified?email=a%40b.com&name=Ada+L"

    def test_hints_survive_the_link_round_trip(self) -> None:
        """A link carrying the built continue URL yields the original hints."""
        url = build_continue_url("https://app.example.com", "/email-verified", "a+b@c.com", "Zoë")
        request = parse_action_link(
            f"mode=verifyEmail&oobCode=A&continueUrl={quote(url, safe='')}"
        )

        assert request.display_name == "Zoë"
        assert request.email.endswith("@c.com")
