import os
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class PasswordResetConfig(BaseModel):
    """Password reset tunables, all overridable through RESET_* variables"""

    token_ttl_minutes: int = Field(10, gt=0)
    code_length: int = Field(6, gt=0, le=12)
    max_attempts: int = Field(5, gt=0)
    lockout_minutes: int = Field(15, gt=0)
    rate_limit_per_email_per_hour: int = Field(5, gt=0)
    rate_limit_per_ip_per_hour: int = Field(20, gt=0)
    verify_rate_limit: int = Field(5, gt=0)
    verify_window_minutes: int = Field(15, gt=0)
    autosignin: bool = False


def _lookup(key: str, environ: Mapping[str, str]) -> Optional[Any]:
    # Environment wins over env.yaml
    if key in environ:
        return environ[key]
    return data.get(key)


def load_password_reset_config(environ: Optional[Mapping[str, str]] = None) -> PasswordResetConfig:
    environ = os.environ if environ is None else environ
    keys = {
        "token_ttl_minutes": "RESET_TOKEN_TTL_MINUTES",
        "code_length": "RESET_CODE_LENGTH",
        "max_attempts": "RESET_MAX_ATTEMPTS",
        "lockout_minutes": "RESET_LOCKOUT_MINUTES",
        "rate_limit_per_email_per_hour": "RESET_RATE_LIMIT_PER_EMAIL_PER_HOUR",
        "rate_limit_per_ip_per_hour": "RESET_RATE_LIMIT_PER_IP_PER_HOUR",
        "verify_rate_limit": "RESET_VERIFY_RATE_LIMIT",
        "verify_window_minutes": "RESET_VERIFY_WINDOW_MINUTES",
    }
    values = {}
    for field_name, key in keys.items():
        raw = _lookup(key, environ)
        if raw is not None:
            # pydantic coerces numeric strings and rejects the rest
            values[field_name] = raw

    autosignin = _lookup("RESET_AUTOSIGNIN", environ)
    if autosignin is not None:
        values["autosignin"] = str(autosignin).lower() == "true"

    return PasswordResetConfig(**values)


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./password_reset.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    # Peers whose X-Forwarded-For / X-Real-IP headers are believed (addresses or CIDRs)
    TRUSTED_PROXIES = data.get("TRUSTED_PROXIES", [])
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_AUDIT_LOGS = bool(data.get("ENABLE_AUDIT_LOGS", True))
    AUTO_CREATE_TABLES = bool(data.get("AUTO_CREATE_TABLES", True))
    CACHE_BACKEND = data.get("CACHE_BACKEND", "memory")
    RATE_LIMIT_SWEEP_SECONDS = data.get("RATE_LIMIT_SWEEP_SECONDS", 300)
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    APP_URL = data.get("APP_URL", "http://localhost:3000")
    EMAIL_FROM = data.get("EMAIL_FROM", "noreply@example.com")
    PASSWORD_RESET = load_password_reset_config()
