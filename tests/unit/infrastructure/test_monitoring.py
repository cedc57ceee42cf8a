"""
Unit Tests for Error Tracking Scrubbing

PRIVACY: Message text and credentials must never reach Sentry.
"""

from optimism.infrastructure.monitoring.sentry_integration import before_send, init_sentry, scrub


class TestBeforeSend:
    """Test suite for the Sentry before_send hook."""

    def test_request_body_dropped(self) -> None:
        event = {
            "request": {
                "data": {"userMessage": "something private"},
                "headers": {"X-Api-Key": "sk-live-123", "Accept": "application/json"},
            }
        }

        scrubbed = before_send(event, {})

        assert "data" not in scrubbed["request"]
        assert scrubbed["request"]["headers"]["X-Api-Key"] == "[REDACTED]"
        assert scrubbed["request"]["headers"]["Accept"] == "application/json"

    def test_extra_scrubbed_recursively(self) -> None:
        event = {
            "extra": {
                "turn_count": 3,
                "payload": {"conversation_history": ["a", "b"], "layer": "trigger"},
                "note": "failed with api_key=sk-abc",
            }
        }

        scrubbed = before_send(event, {})

        assert scrubbed["extra"]["turn_count"] == 3
        assert scrubbed["extra"]["payload"]["conversation_history"] == "[REDACTED]"
        assert scrubbed["extra"]["payload"]["layer"] == "trigger"
        assert "sk-abc" not in scrubbed["extra"]["note"]

    def test_breadcrumb_data_scrubbed(self) -> None:
        event = {"breadcrumbs": {"values": [{"data": {"content": "private text"}}]}}

        scrubbed = before_send(event, {})

        assert scrubbed["breadcrumbs"]["values"][0]["data"]["content"] == "[REDACTED]"

    def test_breadcrumbs_as_plain_list(self) -> None:
        event = {"breadcrumbs": [{"data": {"Authorization": "Bearer abc.def"}}]}

        scrubbed = before_send(event, {})

        assert scrubbed["breadcrumbs"][0]["data"]["Authorization"] == "[REDACTED]"


class TestScrub:
    """Test suite for field and inline secret redaction."""

    def test_camel_case_request_fields(self) -> None:
        scrubbed = scrub({
            "userMessage": "private",
            "providerConfig": {"apiKey": "sk-1"},
            "sessionId": "2b1f",
        })

        assert scrubbed["userMessage"] == "[REDACTED]"
        assert scrubbed["providerConfig"] == "[REDACTED]"
        assert scrubbed["sessionId"] == "2b1f"

    def test_bearer_token_in_text(self) -> None:
        assert scrub("header was Bearer abc123==") == "header was [REDACTED]"

    def test_lists_and_scalars(self) -> None:
        assert scrub([{"token": "x"}, 3, None]) == [{"token": "[REDACTED]"}, 3, None]


class TestInitSentry:
    def test_disabled_without_dsn(self, test_settings) -> None:
        assert init_sentry(test_settings, release="optimism@test") is False
