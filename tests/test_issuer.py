"""
tests/test_issuer.py
Token issuance: input validation, configuration errors, logging hygiene.
"""

import logging

import pytest

from tokenbridge.config import DEMO_SECRET_KEY, BridgeConfig
from tokenbridge.errors import ConfigurationError, InvalidArgument
from tokenbridge.issuer import GENERIC_FAILURE, TokenIssuer
from tokenbridge.models.record import SigningRequest
from tokenbridge.signer import TOKEN_VALIDITY_MS, sign

TS = 1700000000000


def _config(**overrides) -> BridgeConfig:
    fields = dict(app_code="app-d31cb8fb", access_key="ak-test123", secret_key="sk-test")
    fields.update(overrides)
    return BridgeConfig(**fields)


def _issuer(**overrides) -> TokenIssuer:
    return TokenIssuer(_config(**overrides), clock=lambda: TS)


class TestIssue:
    def test_issue_matches_direct_sign(self):
        result = _issuer().issue("ds-001")
        expected = sign(SigningRequest("app-d31cb8fb", "ds-001", "ak-test123", "sk-test", TS))
        assert result == expected
        assert result.expires_at == TS + TOKEN_VALIDITY_MS

    def test_dataset_code_is_stripped(self):
        assert _issuer().issue("  ds-001 ").token == _issuer().issue("ds-001").token

    @pytest.mark.parametrize("dataset", [None, "", "   "])
    def test_missing_dataset_is_invalid_argument(self, dataset):
        with pytest.raises(InvalidArgument) as exc_info:
            _issuer().issue(dataset)
        assert exc_info.value.public_message == "datasetCode is required"

    def test_missing_dataset_checked_before_configuration(self):
        with pytest.raises(InvalidArgument):
            _issuer(access_key="", secret_key="").issue("")

    def test_missing_access_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _issuer(access_key="").issue("ds-001")
        assert exc_info.value.public_message == "ACCESS_KEY not configured"

    def test_missing_app_code(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _issuer(app_code="").issue("ds-001")
        assert exc_info.value.public_message == GENERIC_FAILURE

    def test_missing_secret_without_demo_mode(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _issuer(secret_key="").issue("ds-001")
        assert exc_info.value.public_message == GENERIC_FAILURE

    def test_demo_mode_uses_fallback_secret_and_warns(self, caplog):
        caplog.set_level(logging.WARNING)
        result = _issuer(secret_key="", demo_mode=True).issue("ds-001")
        expected = sign(SigningRequest("app-d31cb8fb", "ds-001", "ak-test123", DEMO_SECRET_KEY, TS))
        assert result.token == expected.token
        assert any("DEMO MODE" in r.getMessage() for r in caplog.records)

    def test_configured_secret_wins_over_demo_mode(self):
        assert (_issuer(demo_mode=True).issue("ds-001").token
                == _issuer().issue("ds-001").token)

    def test_uses_clock_when_issuing(self):
        ticks = iter([1000, 2000])
        issuer = TokenIssuer(_config(), clock=lambda: next(ticks))
        first, second = issuer.issue("ds-001"), issuer.issue("ds-001")
        assert (first.timestamp, second.timestamp) == (1000, 2000)
        assert first.token != second.token

    def test_logs_identifiers_but_never_keys(self, caplog):
        caplog.set_level(logging.DEBUG)
        _issuer().issue("ds-001")
        messages = " ".join(r.getMessage() for r in caplog.records)
        assert "app-d31cb8fb" in messages
        assert "ds-001" in messages
        assert str(TS) in messages
        assert "sk-test" not in messages
        assert "ak-test123" not in messages
