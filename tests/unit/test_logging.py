"""
Unit Tests for Log Redaction
============================
"""

from shared.logging import censor_sensitive


class TestCensorSensitive:
    """Tests for censor_sensitive."""

    def test_redacts_private_values(self):
        event = {
            "event": "credit_proof_generated",
            "salary": 6000,
            "encrypted_expenses": [b"\x00"],
            "secret_key": b"k",
            "threshold": 5000,
        }

        censored = censor_sensitive(event)

        assert censored["salary"] == "***REDACTED***"
        assert censored["encrypted_expenses"] == "***REDACTED***"
        assert censored["secret_key"] == "***REDACTED***"
        assert censored["threshold"] == 5000
        assert censored["event"] == "credit_proof_generated"

    def test_nested_and_case_insensitive(self):
        censored = censor_sensitive({"request": {"Witness": {"x": 1}, "session_id": "s"}})

        assert censored["request"]["Witness"] == "***REDACTED***"
        assert censored["request"]["session_id"] == "s"

    def test_input_not_modified(self):
        event = {"salary": 6000}
        censor_sensitive(event)
        assert event == {"salary": 6000}
