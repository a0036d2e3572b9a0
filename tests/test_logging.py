import json
import logging

from pinboard_cli.logging import (
    JsonFormatter,
    configure_logging,
    redact_mapping,
    redact_url,
)


def test_redact_url_masks_auth_token() -> None:
    url = "https://api.pinboard.in/v1/posts/recent?auth_token=alice:s3cret&format=json&tag=py"

    assert redact_url(url) == (
        "https://api.pinboard.in/v1/posts/recent?auth_token=***REDACTED***&format=json&tag=py"
    )


def test_redact_url_without_query_is_unchanged() -> None:
    assert redact_url("https://api.pinboard.in/v1/posts/all") == "https://api.pinboard.in/v1/posts/all"


def test_redact_mapping_is_case_insensitive() -> None:
    redacted = redact_mapping({"Token": "abc", "user": "alice", "X-Secret": "1"}, extra_keys=["x-secret"])

    assert redacted == {"Token": "***REDACTED***", "user": "alice", "X-Secret": "***REDACTED***"}


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        name="pinboard.api",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="API response",
        args=(),
        exc_info=None,
    )
    record.status_code = 200

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "API response"
    assert payload["logger"] == "pinboard.api"
    assert payload["level"] == "DEBUG"
    assert payload["status_code"] == 200
    assert "msg" not in payload


def test_configure_logging_sets_levels() -> None:
    configure_logging("debug", "json")
    try:
        assert logging.getLogger("pinboard.api").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler.formatter, JsonFormatter) for handler in handlers)
    finally:
        configure_logging("WARNING", "plain")

    assert logging.getLogger("pinboard.cli").level == logging.WARNING


def test_redact_url_masks_username_containing_ampersand() -> None:
    url = "https://api.pinboard.in/v1/posts/recent?auth_token=al&ice:s3cret&format=json&tag=py"

    redacted = redact_url(url)

    assert "s3cret" not in redacted
    assert redacted.endswith("?auth_token=***REDACTED***&format=json&tag=py")
