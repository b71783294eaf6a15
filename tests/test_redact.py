from __future__ import annotations

from stickyresolve._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "flags": ["flags/checkout"],
        "clientSecret": "client-secret",
        "evaluationContext": {"targeting_key": "user-1", "authorization": "Bearer abc"},
        "resolveToken": "b3BhcXVl",
    }

    redacted = redact_for_log(payload)
    assert redacted["clientSecret"] == "<redacted>"
    assert redacted["resolveToken"] == "<redacted>"
    assert redacted["evaluationContext"]["authorization"] == "<redacted>"
    assert redacted["evaluationContext"]["targeting_key"] == "user-1"
    assert redacted["flags"] == ["flags/checkout"]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_matches_key_spellings() -> None:
    redacted = redact_for_log({"evaluationContext": {"Client-Secret": "s", "api_key": "k", "country": "SE"}})

    assert redacted["evaluationContext"] == {"Client-Secret": "<redacted>", "api_key": "<redacted>", "country": "SE"}


def test_redact_for_log_shortens_long_flag_lists() -> None:
    flags = [f"flags/f{index}" for index in range(5)]

    redacted = redact_for_log({"flags": flags}, max_flags=2)

    assert redacted["flags"] == ["flags/f0", "flags/f1", "<+3 more>"]
    assert len(flags) == 5
