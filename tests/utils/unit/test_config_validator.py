"""
Startup configuration validation tests.

Run with:
    pytest tests/utils/unit/test_config_validator.py -v
"""

from types import SimpleNamespace

import pytest

from enums.runtime_environment import RuntimeEnvironment
from utils.config_validator import ConfigValidationError, validate_or_exit, validate_startup_config


def _config(**overrides) -> SimpleNamespace:
    values = dict(
        RUNTIME_ENVIRONMENT=RuntimeEnvironment.PROD,
        DB_URL="sqlite+aiosqlite:///data/storefront.db",
        REDIS_URL="redis://localhost:6379/0",
        STRIPE_SECRET_KEY="sk_live_51HxYzAbCdEfGhIjKlMn",
        FREE_SHIPPING_THRESHOLD=500.0,
        SHIPPING_COST=79.0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestValidateStartupConfig:
    """Test validate_startup_config()"""

    def test_valid_config_passes(self):
        validate_startup_config(_config())

    @pytest.mark.parametrize("key", ["", "pk_live_51HxYzAbCdEfGhIjKlMn"])
    def test_stripe_key_required_outside_tests(self, key):
        with pytest.raises(ConfigValidationError, match="STRIPE_SECRET_KEY"):
            validate_startup_config(_config(STRIPE_SECRET_KEY=key))

    def test_stripe_key_optional_in_test_environment(self):
        validate_startup_config(_config(RUNTIME_ENVIRONMENT=RuntimeEnvironment.TEST, STRIPE_SECRET_KEY=""))

    def test_missing_redis_url(self):
        with pytest.raises(ConfigValidationError, match="REDIS_URL"):
            validate_startup_config(_config(REDIS_URL=""))

    def test_negative_shipping_cost(self):
        with pytest.raises(ConfigValidationError, match="SHIPPING_COST"):
            validate_startup_config(_config(SHIPPING_COST=-1.0))

    def test_validate_or_exit_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(_config(DB_URL=""))

        assert exc_info.value.code == 1
        assert "DB_URL" in capsys.readouterr().err
