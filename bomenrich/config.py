"""
Configuration for the Z2Data client and the Supabase Postgres store.

Both configs are plain dataclasses built once, at startup, and injected into
the objects that need them. ``from_env()`` reads the process environment and
fails fast with ConfigurationError; nothing in this package reads the
environment ad hoc per call.
"""

import os
import re
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_Z2DATA_BASE_URL = "https://gateway.z2data.com"
DEFAULT_Z2DATA_TIMEOUT = 30.0

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


def clean_env_value(value: Optional[str]) -> Optional[str]:
    """
    Strip non-printable and non-ASCII characters from a configuration value.

    Credentials pasted from dashboards often carry zero-width spaces or
    trailing newlines that break HTTP headers and connection strings.
    """
    if value is None:
        return None
    return _NON_PRINTABLE.sub("", value).strip()


@dataclass(frozen=True)
class Z2DataConfig:
    """Credentials and endpoint for the Z2Data parts API."""
    api_key: str
    base_url: str = DEFAULT_Z2DATA_BASE_URL
    timeout: float = DEFAULT_Z2DATA_TIMEOUT

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError("Z2DATA_API_KEY is not configured")

    def __repr__(self):
        # Keep the key out of logs and tracebacks
        return f"Z2DataConfig(base_url={self.base_url!r}, timeout={self.timeout})"

    @classmethod
    def from_env(cls) -> "Z2DataConfig":
        api_key = clean_env_value(os.getenv("Z2DATA_API_KEY"))
        base_url = clean_env_value(os.getenv("Z2DATA_BASE_URL")) or DEFAULT_Z2DATA_BASE_URL
        raw_timeout = clean_env_value(os.getenv("Z2DATA_TIMEOUT"))
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_Z2DATA_TIMEOUT
        except ValueError:
            raise ConfigurationError(f"Invalid Z2DATA_TIMEOUT: {raw_timeout!r}")
        return cls(api_key=api_key or "", base_url=base_url.rstrip("/"), timeout=timeout)


@dataclass(frozen=True)
class SupabaseConfig:
    """
    Connection settings for the hosted Postgres behind Supabase.

    Uses a direct Postgres connection string, not the Supabase REST API keys.
    Get it from Supabase Dashboard → Project Settings → Database.
    """
    db_url: str

    def __post_init__(self):
        if not self.db_url:
            raise ConfigurationError(
                "Missing database connection details. Set SUPABASE_DB_URL, or "
                "SUPABASE_DB_HOST, SUPABASE_DB_NAME, SUPABASE_DB_USER and "
                "SUPABASE_DB_PASSWORD."
            )

    def __repr__(self):
        return "SupabaseConfig(db_url=***)"

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """
        Resolve connection settings from the environment.

        Priority: 1) SUPABASE_DB_URL, 2) individual SUPABASE_DB_* variables.
        """
        db_url = clean_env_value(os.getenv("SUPABASE_DB_URL"))
        if db_url:
            return cls(db_url=db_url)

        host = clean_env_value(os.getenv("SUPABASE_DB_HOST"))
        port = clean_env_value(os.getenv("SUPABASE_DB_PORT")) or "5432"
        database = clean_env_value(os.getenv("SUPABASE_DB_NAME"))
        user = clean_env_value(os.getenv("SUPABASE_DB_USER"))
        password = clean_env_value(os.getenv("SUPABASE_DB_PASSWORD"))

        if not all([host, database, user, password]):
            return cls(db_url="")

        return cls(db_url=f"postgresql://{user}:{password}@{host}:{port}/{database}")
