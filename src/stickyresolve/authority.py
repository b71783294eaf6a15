"""Built-in remote authority: delegates resolution to the resolver HTTP API."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from stickyresolve._constants import (
    DEFAULT_AUTHORITY_TIMEOUT,
    DEFAULT_AUTHORITY_URL,
    RESOLVE_ENDPOINT,
    USER_AGENT,
)
from stickyresolve._redact import redact_for_log
from stickyresolve.config import StickyConfig
from stickyresolve.exceptions import AuthorityError
from stickyresolve.models.resolve import ResolveRequest, ResolveResponse

_logger = logging.getLogger(__name__)


class HttpRemoteAuthority:
    """Remote authority that POSTs the whole request to ``/flags:resolve``.

    The authority owns materialization persistence and TTL policy for
    every flag it resolves, so nothing is written locally on this path.
    Each call is bounded by ``timeout`` seconds; a non-200 status, a
    connection error, a timeout or an unparsable body fails the whole
    batch with :class:`AuthorityError`.

    Pass ``session`` to reuse an existing :class:`aiohttp.ClientSession`;
    it is left open on :meth:`close`.  Otherwise a session is created on
    first use and closed with the authority.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_AUTHORITY_URL,
        *,
        timeout: float = DEFAULT_AUTHORITY_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._external_session = session is not None
        self._http = session
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: StickyConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> HttpRemoteAuthority:
        return cls(config.authority_url, timeout=config.authority_timeout, session=session)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise AuthorityError("Remote authority is closed", endpoint=RESOLVE_ENDPOINT)
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self._http

    async def resolve(self, request: ResolveRequest) -> ResolveResponse:
        """Resolve *request* remotely and return the authority's answer verbatim."""
        http = self._require_session()
        endpoint = RESOLVE_ENDPOINT
        url = f"{self._base_url}{endpoint}"
        payload = request.to_wire()
        headers = {
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s payload=%s", url, redact_for_log(payload))

        try:
            async with http.post(url, json=payload, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise AuthorityError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except AuthorityError:
            raise
        except TimeoutError as exc:
            raise AuthorityError(
                f"Request to {endpoint} timed out after {self._timeout.total}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise AuthorityError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AuthorityError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=200,
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict):
            raise AuthorityError(
                f"Unexpected response shape from {endpoint}: {type(body).__name__}",
                status_code=200,
                endpoint=endpoint,
            )

        try:
            response = ResolveResponse.model_validate(body)
        except ValidationError as exc:
            raise AuthorityError(
                f"Invalid resolve response from {endpoint}: {exc.error_count()} error(s)",
                status_code=200,
                endpoint=endpoint,
            ) from exc

        _logger.debug(
            "Authority resolved %d flag(s) resolve_id=%s",
            len(response.resolved_flags),
            response.resolve_id,
        )
        return response

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        http = self._http
        self._http = None
        if http is not None and not self._external_session:
            await http.close()
