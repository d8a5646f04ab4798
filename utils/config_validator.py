"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_stripe_secret(secret_key: Optional[str]) -> None:
    """
    Validate the Stripe secret key.

    Args:
        secret_key: STRIPE_SECRET_KEY value

    Raises:
        ConfigValidationError: If the key is missing or is not a secret key
    """
    if not secret_key or len(secret_key.strip()) == 0:
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY is required and must not be empty!\n"
            "Get your secret key from the Stripe dashboard (Developers -> API keys).\n"
            "Add to .env: STRIPE_SECRET_KEY=sk_test_..."
        )

    if not secret_key.startswith(("sk_live_", "sk_test_", "rk_live_", "rk_test_")):
        raise ConfigValidationError(
            "STRIPE_SECRET_KEY does not look like a Stripe secret key (expected sk_live_/sk_test_ prefix).\n"
            "The publishable key (pk_...) cannot create payment intents."
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Args:
        value: The config value to check
        name: Name of the config variable
        example: Optional example value to show in error message

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_required_config(getattr(config_module, 'DB_URL', None), 'DB_URL',
                             'sqlite+aiosqlite:///data/storefront.db')
    validate_required_config(getattr(config_module, 'REDIS_URL', None), 'REDIS_URL',
                             'redis://localhost:6379/0')

    # Tests mock the payment processor
    if getattr(config_module, 'RUNTIME_ENVIRONMENT', None) != RuntimeEnvironment.TEST:
        validate_stripe_secret(getattr(config_module, 'STRIPE_SECRET_KEY', None))

    threshold = getattr(config_module, 'FREE_SHIPPING_THRESHOLD', 0)
    shipping_cost = getattr(config_module, 'SHIPPING_COST', 0)
    if threshold < 0 or shipping_cost < 0:
        raise ConfigValidationError(
            f"FREE_SHIPPING_THRESHOLD and SHIPPING_COST must not be negative "
            f"(got {threshold} and {shipping_cost})"
        )


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nStartup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
