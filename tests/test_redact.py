from __future__ import annotations

from injpoints._redact import redact_for_log


def test_redact_for_log_hides_device_info() -> None:
    payload = {
        "type": "start",
        "sessionId": "s1",
        "deviceInfo": {"ua": "Mozilla/5.0", "screen": "1920x1080"},
        "nested": {"token": "abc"},
    }

    redacted = redact_for_log(payload)

    assert redacted["deviceInfo"] == "<redacted>"
    assert redacted["nested"]["token"] == "<redacted>"
    assert redacted["sessionId"] == "s1"


def test_redact_for_log_truncates_long_strings_and_lists() -> None:
    redacted = redact_for_log({"page": "x" * 600, "items": list(range(30))}, max_string=10, max_items=5)

    assert redacted["page"].startswith("x" * 10)
    assert "<truncated>" in redacted["page"]
    assert redacted["items"] == [0, 1, 2, 3, 4, "<+25 more>"]
