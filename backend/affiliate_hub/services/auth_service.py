"""Authentication helpers — bcrypt passwords and client API keys."""

import secrets

import bcrypt

API_KEY_PREFIX = "ah_live_"
API_KEY_LENGTH = len(API_KEY_PREFIX) + 64


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def generate_api_key() -> str:
    """New opaque bearer credential for the desktop client."""
    return f"{API_KEY_PREFIX}{secrets.token_hex(32)}"


def mask_api_key(api_key: str | None) -> str:
    if not api_key or len(api_key) < 20:
        return "•" * 12
    return f"{api_key[:12]}{'•' * 20}{api_key[-8:]}"


def validate_api_key_format(api_key: str) -> bool:
    return api_key.startswith(API_KEY_PREFIX) and len(api_key) == API_KEY_LENGTH

