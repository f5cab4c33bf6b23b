"""Service configuration for injpoints."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from injpoints._constants import MAX_BODY_BYTES
from injpoints.exceptions import ConfigError

STORE_BACKENDS: frozenset[str] = frozenset({"memory", "file", "blob"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class InjPointsConfig:
    """Service configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        TCP port of the HTTP server.
    store_backend : str
        Document backend: ``"memory"``, ``"file"`` or ``"blob"``.
    data_dir : Path
        Root directory of the ``file`` backend.
    blob_token : str or None
        Read/write token of the blob service. Required for ``blob``.
    blob_base_url : str
        Base URL of the blob service API.
    max_body_bytes : int
        Ceiling for request bodies and stored documents.
    debug_payloads : bool
        Log incoming tracking payloads (redacted) at DEBUG level.
    """

    host: str = "0.0.0.0"
    port: int = 8080
    store_backend: str = "memory"
    data_dir: Path = Path("data")
    blob_token: str | None = None
    blob_base_url: str = "https://blob.vercel-storage.com"
    max_body_bytes: int = MAX_BODY_BYTES
    debug_payloads: bool = False

    def validate(self) -> InjPointsConfig:
        """Raise :class:`ConfigError` on inconsistent settings; return self."""
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigError(
                f"store_backend must be one of {sorted(STORE_BACKENDS)}, got {self.store_backend!r}"
            )
        if self.store_backend == "blob" and not self.blob_token:
            raise ConfigError("blob backend requires BLOB_READ_WRITE_TOKEN")
        if self.max_body_bytes <= 0:
            raise ConfigError("max_body_bytes must be positive")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> InjPointsConfig:
        """Create configuration from environment variables.

        Reads ``INJPOINTS_*`` variables and ``BLOB_READ_WRITE_TOKEN``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "INJPOINTS_HOST": "host",
            "INJPOINTS_STORE": "store_backend",
            "INJPOINTS_BLOB_URL": "blob_base_url",
            "BLOB_READ_WRITE_TOKEN": "blob_token",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        data_dir = env.get("INJPOINTS_DATA_DIR")
        if data_dir is not None:
            config_kwargs["data_dir"] = Path(data_dir)

        # numeric fields
        for env_key, field_name in (
            ("INJPOINTS_PORT", "port"),
            ("INJPOINTS_MAX_BODY_BYTES", "max_body_bytes"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        if "debug_payloads" not in overrides:
            config_kwargs["debug_payloads"] = _env_bool(env.get("INJPOINTS_DEBUG_PAYLOADS"), False)

        if isinstance(overrides.get("data_dir"), str):
            overrides["data_dir"] = Path(overrides["data_dir"])

        config_kwargs.update(overrides)

        return cls(**config_kwargs).validate()
