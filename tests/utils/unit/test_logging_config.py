"""
SecretMaskingFilter Unit Tests

Run with:
    pytest tests/utils/unit/test_logging_config.py -v
"""

import logging

import pytest

from utils.logging_config import SecretMaskingFilter


def _record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestSecretMaskingFilter:
    """Stripe credentials and customer data never reach the log files"""

    @pytest.mark.parametrize("text,secret", [
        ("Using key sk_test_51HxYzAbCdEfGhIjKlMn", "51HxYzAbCdEfGhIjKlMn"),
        ("Using key sk_live_51HxYzAbCdEfGhIjKlMn", "51HxYzAbCdEfGhIjKlMn"),
        ("client secret pi_3Ab12_secret_Zx98yW", "Zx98yW"),
        ("Order for kari@example.no created", "kari@example.no"),
        ("Phone +47 912 34 567 saved", "912 34 567"),
        ("Bearer eyJhbGciOiJIUzI1NiJ9.payload.sig", "eyJhbGciOiJIUzI1NiJ9"),
    ])
    def test_masks_message(self, text, secret):
        record = _record(text)

        assert SecretMaskingFilter().filter(record) is True
        assert secret not in record.msg
        assert "REDACTED" in record.msg

    def test_masks_string_args(self):
        record = _record("Payment intent for %s with %d lines", "kari@example.no", 3)

        SecretMaskingFilter().filter(record)

        assert record.args == ("[REDACTED_EMAIL]", 3)

    def test_leaves_ordinary_messages_alone(self):
        text = "[CartSync:sess-1] upsert superseded 1 queued write(s)"
        record = _record(text)

        SecretMaskingFilter().filter(record)

        assert record.msg == text
