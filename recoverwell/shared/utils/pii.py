"""Keyed hashing of user identifiers for log lines.

Engine logs carry `user_id_hash`, never a raw user id. The key (salt)
comes from PII_HASH_SALT and must be configured before the first log
call that hashes an id.
"""
import hashlib
import hmac
import logging
import os

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32
SALT_ENV_VAR = "PII_HASH_SALT"

# Only accepted when the caller opts in, e.g. a local run of the HTTP handler
LOCAL_DEV_SALT = "recoverwell_local_development_salt_only"

_salt_key = None


def configure_pii_salt(salt):
    """Set the hashing key. Raises ValueError under MIN_SALT_LENGTH characters."""
    global _salt_key
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _salt_key = salt.encode()
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def configure_pii_salt_from_env(allow_dev_default=False):
    """Configure the key from PII_HASH_SALT.

    With allow_dev_default, an unset variable falls back to LOCAL_DEV_SALT
    and logs a warning. A set but short value is always rejected.
    """
    salt = os.getenv(SALT_ENV_VAR)
    if not salt and allow_dev_default:
        logger.warning("PII_SALT_DEV_DEFAULT", extra={"env_var": SALT_ENV_VAR})
        salt = LOCAL_DEV_SALT
    configure_pii_salt(salt)


def hash_pii(value):
    """HMAC-SHA256 of `value` under the configured key, as 64 hex chars.

    Raises:
        RuntimeError: If no key has been configured
    """
    if _salt_key is None:
        logger.critical(
            "PII_HASH_FAILED",
            extra={"reason": "Salt not configured", "action": "call configure_pii_salt()"}
        )
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")

    return hmac.new(_salt_key, value.encode(), hashlib.sha256).hexdigest()
