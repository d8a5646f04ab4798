import os

from dotenv import load_dotenv

from enums.cart_merge_policy import CartMergePolicy
from enums.currency import Currency
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test suites to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    import sys
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000

# Hosted relational store (cart rows, orders). Any SQLAlchemy async URL works.
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/storefront.db")

# Key-value "device" storage for guest carts
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
GUEST_CART_TTL_DAYS = int(os.environ.get("GUEST_CART_TTL_DAYS", "30"))
# In-memory cart sessions idle for longer are stopped and dropped
CART_SESSION_IDLE_TTL_MINUTES = int(os.environ.get("CART_SESSION_IDLE_TTL_MINUTES", "60"))

# Payment processor
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")

# Parse CURRENCY with error handling
try:
    CURRENCY = Currency(os.environ.get("CURRENCY", Currency.NOK.value))
except ValueError as e:
    valid_currencies = [c.value for c in Currency]
    import sys
    print(f"\n ERROR: Invalid CURRENCY configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_currencies)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('CURRENCY', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Shipping (Norwegian kroner)
FREE_SHIPPING_THRESHOLD = float(os.environ.get("FREE_SHIPPING_THRESHOLD", "500"))
SHIPPING_COST = float(os.environ.get("SHIPPING_COST", "79"))
SHIPPING_COUNTRY = os.environ.get("SHIPPING_COUNTRY", "Norge")

# What happens to a guest cart when the visitor signs in
try:
    CART_LOGIN_MERGE_POLICY = CartMergePolicy(
        os.environ.get("CART_LOGIN_MERGE_POLICY", CartMergePolicy.MERGE.value)
    )
except ValueError as e:
    valid_policies = [p.value for p in CartMergePolicy]
    import sys
    print(f"\n ERROR: Invalid CART_LOGIN_MERGE_POLICY configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_policies)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('CART_LOGIN_MERGE_POLICY', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Dev keeps a month for debugging, everything else 5 days
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# Browser origins allowed to call the API (the storefront front end)
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []
