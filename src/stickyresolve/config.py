"""Coordinator configuration for stickyresolve."""

from __future__ import annotations

import dataclasses
import enum
import os
from typing import Any

from stickyresolve._constants import DEFAULT_AUTHORITY_TIMEOUT, DEFAULT_AUTHORITY_URL
from stickyresolve.exceptions import ConfigurationError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class WriteMode(enum.StrEnum):
    """How the coordinator waits on materialization writes."""

    SYNC = "sync"
    BACKGROUND = "background"


@dataclasses.dataclass(frozen=True)
class StickyConfig:
    """Coordinator configuration.

    Parameters
    ----------
    client_secret : str
        Flag client credential forwarded to the remote authority.
    authority_url : str
        Base URL of the remote authority used when no strategy is given.
    authority_timeout : float
        Total seconds the built-in HTTP authority waits for one resolve
        call before failing with :class:`AuthorityError`.
    apply : bool
        Default apply-and-log flag sent with every request.
    write_mode : WriteMode
        ``SYNC`` awaits ``save`` before returning a decision;
        ``BACKGROUND`` returns first and reports failures through the
        coordinator's ``on_write_error`` callback.
    persist_fast_path : bool
        When a store is configured, also save assignments decided on the
        fast path (no missing data) as tracked background writes.  Off by
        default, which keeps the fast path free of store I/O.
    """

    client_secret: str = ""
    authority_url: str = DEFAULT_AUTHORITY_URL
    authority_timeout: float = DEFAULT_AUTHORITY_TIMEOUT
    apply: bool = True
    write_mode: WriteMode = WriteMode.SYNC
    persist_fast_path: bool = False

    def __post_init__(self) -> None:
        if self.authority_timeout <= 0:
            raise ConfigurationError(f"authority_timeout must be positive, got {self.authority_timeout}")
        if not self.authority_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"authority_url must be an http(s) URL, got {self.authority_url!r}")
        if not isinstance(self.write_mode, WriteMode):
            try:
                object.__setattr__(self, "write_mode", WriteMode(str(self.write_mode).strip().lower()))
            except ValueError as exc:
                raise ConfigurationError(f"unknown write_mode {self.write_mode!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> StickyConfig:
        """Create configuration from ``STICKY_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        secret = env.get("STICKY_CLIENT_SECRET")
        if secret is not None:
            config_kwargs["client_secret"] = secret

        url = env.get("STICKY_AUTHORITY_URL")
        if url is not None:
            config_kwargs["authority_url"] = url.rstrip("/")

        timeout_env = env.get("STICKY_AUTHORITY_TIMEOUT")
        if timeout_env is not None and "authority_timeout" not in overrides:
            try:
                config_kwargs["authority_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise ConfigurationError(f"STICKY_AUTHORITY_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "apply" not in overrides:
            config_kwargs["apply"] = _env_bool(env.get("STICKY_APPLY"), True)

        if "persist_fast_path" not in overrides:
            config_kwargs["persist_fast_path"] = _env_bool(env.get("STICKY_PERSIST_FAST_PATH"), False)

        write_mode_env = env.get("STICKY_WRITE_MODE")
        if write_mode_env is not None:
            config_kwargs["write_mode"] = write_mode_env

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
