# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""HTTP client for a remote DID registry.

Protocol (JSON over HTTP)::

    POST {endpoint}/api/v1/dids          {"did": ..., "document": {...}}
    GET  {endpoint}/api/v1/dids/{did}    -> {"did": ..., "document": {...}}

The registry is the authority on conflicts; this client only reports what it
answers. Transient failures (transport errors, 429/502/503/504) are retried a
bounded number of times with exponential backoff. Rejections are never retried.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import rfc8785

from ..core.exceptions import (
    DidForgeError,
    DocumentNotFoundError,
    EncodingError,
    NetworkError,
    RegistryRejectedError,
    SubmissionCancelledError,
)
from ..core.logging import correlation_context
from ..identity.document import DidDocument, is_valid_did

if TYPE_CHECKING:
    from ..core.config import IdentitySettings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
RETRYABLE_STATUS = frozenset({429, 502, 503, 504})


@dataclass
class SubmitResult:
    """Outcome of a registry submission. Truthy only if the registry accepted."""

    accepted: bool
    attempts: int = 0
    status_code: int | None = None
    error: DidForgeError | None = None
    cancelled: bool = False

    def __bool__(self) -> bool:
        return self.accepted


class RegistryClient:
    """Publishes and resolves DID Documents on a registry endpoint.

    Each request opens its own ``httpx.Client``, so one instance may be shared
    between threads.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_retries: int = 2,
        backoff_initial: float = 0.5,
        backoff_max: float = 4.0,
        token: str = "",
        transport: httpx.BaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.token = token
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: IdentitySettings,
        transport: httpx.BaseTransport | None = None,
    ) -> RegistryClient:
        return cls(
            timeout=settings.registry_timeout,
            max_retries=settings.registry_max_retries,
            backoff_initial=settings.registry_backoff_initial,
            backoff_max=settings.registry_backoff_max,
            token=settings.registry_token,
            transport=transport,
        )

    # -- helpers ------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _url(endpoint: str, path: str) -> str:
        """Build a request URL, rejecting endpoints that cannot be reached.

        Raises:
            NetworkError: (not retryable) for empty or malformed endpoints.
        """
        base = (endpoint or "").strip().rstrip("/")
        if not base:
            raise NetworkError(endpoint, "endpoint is empty", retryable=False)
        try:
            url = httpx.URL(base)
        except httpx.InvalidURL as e:
            raise NetworkError(endpoint, f"malformed endpoint: {e}", retryable=False) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise NetworkError(endpoint, "endpoint must be an http(s) URL with a host", retryable=False)
        return f"{base}{API_PREFIX}{path}"

    def _backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return min(self.backoff_initial * (2 ** (attempt - 1)), self.backoff_max)

    @staticmethod
    def _sleep(delay: float, cancel: threading.Event | None) -> bool:
        """Wait ``delay`` seconds. Returns True if cancelled meanwhile."""
        if cancel is not None:
            return cancel.wait(delay)
        if delay > 0:
            time.sleep(delay)
        return False

    def _send(self, method: str, url: str, endpoint: str, content: bytes | None = None) -> httpx.Response:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                return client.request(method, url, headers=self._headers(), content=content)
        except httpx.TimeoutException as e:
            raise NetworkError(endpoint, "request timed out") from e
        except httpx.UnsupportedProtocol as e:
            raise NetworkError(endpoint, str(e), retryable=False) from e
        except httpx.TransportError as e:
            raise NetworkError(endpoint, str(e) or e.__class__.__name__) from e
        except httpx.RequestError as e:
            # Undecodable body or redirect loop; not transient.
            raise NetworkError(endpoint, str(e) or e.__class__.__name__, retryable=False) from e

    @staticmethod
    def _raise_for_status(endpoint: str, resp: httpx.Response) -> None:
        """Classify a non-2xx response as transient or a rejection."""
        if resp.status_code < 300:
            return
        if resp.status_code in RETRYABLE_STATUS:
            raise NetworkError(
                endpoint,
                f"registry temporarily unavailable (HTTP {resp.status_code})",
                status_code=resp.status_code,
            )
        try:
            error = resp.json().get("error", {})
            code = error.get("code", "UNKNOWN")
            message = error.get("message", resp.text)
        except (ValueError, AttributeError):
            # Not JSON, or not valid UTF-8.
            code, message = "UNKNOWN", resp.text
        raise RegistryRejectedError(resp.status_code, code, message)

    def _execute(
        self,
        method: str,
        endpoint: str,
        path: str,
        content: bytes | None = None,
        cancel: threading.Event | None = None,
    ) -> tuple[SubmitResult, httpx.Response | None]:
        """Run one request with bounded retries; never raises DidForgeError."""
        try:
            url = self._url(endpoint, path)
        except NetworkError as e:
            return SubmitResult(accepted=False, error=e), None

        attempts = 0
        while True:
            if cancel is not None and cancel.is_set():
                return SubmitResult(False, attempts, error=SubmissionCancelledError(endpoint), cancelled=True), None
            attempts += 1
            logger.debug(
                "%s %s attempt %d",
                method,
                url,
                attempts,
                extra={"extra_data": {"endpoint": endpoint, "attempt": attempts, "headers": self._headers()}},
            )
            try:
                resp = self._send(method, url, endpoint, content=content)
                self._raise_for_status(endpoint, resp)
            except NetworkError as e:
                if not e.retryable or attempts > self.max_retries:
                    logger.warning(
                        "%s %s failed after %d attempt(s): %s",
                        method,
                        url,
                        attempts,
                        e.detail,
                        extra={"extra_data": e.to_dict()},
                    )
                    return SubmitResult(False, attempts, e.status_code, e), None
                delay = self._backoff(attempts)
                logger.info("%s %s attempt %d failed (%s); retrying in %.2fs", method, url, attempts, e.detail, delay)
                if self._sleep(delay, cancel):
                    return SubmitResult(False, attempts, error=SubmissionCancelledError(endpoint), cancelled=True), None
                continue
            except RegistryRejectedError as e:
                logger.warning(
                    "%s %s rejected: [%d] %s", method, url, e.status_code, e.code, extra={"extra_data": e.to_dict()}
                )
                return SubmitResult(False, attempts, e.status_code, e), None
            return SubmitResult(True, attempts, resp.status_code), resp

    # -- operations ---------------------------------------------------------

    def submit(
        self,
        endpoint: str,
        identifier: str,
        document: DidDocument,
        cancel: threading.Event | None = None,
    ) -> SubmitResult:
        """Publish ``document`` under ``identifier`` at ``endpoint``.

        Ordinary negative outcomes (unreachable endpoint, duplicate DID,
        malformed request) are reported in the result, not raised.

        Args:
            endpoint: Registry base URL.
            identifier: The DID to register.
            document: The DID Document to publish.
            cancel: Optional event; once set, no further attempt is started.
        """
        with correlation_context():
            try:
                if not is_valid_did(identifier):
                    raise RegistryRejectedError(0, "INVALID_DID", f"not a valid DID: {identifier!r}")
                if identifier != document.id:
                    logger.warning("Submitting %s with a document whose id is %s", identifier, document.id)
                body = rfc8785.dumps({"did": identifier, "document": document.to_dict()})
            except rfc8785.CanonicalizationError as e:
                return SubmitResult(False, error=EncodingError(f"Cannot encode request: {e}"))
            except DidForgeError as e:
                return SubmitResult(False, error=e)

            result, _ = self._execute("POST", endpoint, "/dids", content=body, cancel=cancel)
            if result.accepted:
                logger.info("Registry at %s accepted %s", endpoint, identifier)
            return result

    def create(
        self,
        endpoint: str,
        identifier: str,
        document: DidDocument,
        cancel: threading.Event | None = None,
    ) -> SubmitResult:
        """Like :meth:`submit`, but raise the failure instead of returning it.

        Raises:
            NetworkError: Transport failure (after retries) or cancellation.
            RegistryRejectedError: The registry declined the document.
            EncodingError: The request could not be encoded.
        """
        result = self.submit(endpoint, identifier, document, cancel=cancel)
        if result.error is not None:
            raise result.error
        return result

    def resolve(self, endpoint: str, identifier: str, cancel: threading.Event | None = None) -> DidDocument:
        """Fetch the document registered for ``identifier``.

        Raises:
            DocumentNotFoundError: The registry has no document for the DID.
            NetworkError: Transport failure (after retries) or cancellation.
            RegistryRejectedError: The registry declined the request.
            EncodingError: The registry returned something that is not a DID Document.
        """
        if not is_valid_did(identifier):
            raise RegistryRejectedError(0, "INVALID_DID", f"not a valid DID: {identifier!r}")
        with correlation_context():
            result, resp = self._execute("GET", endpoint, f"/dids/{identifier}", cancel=cancel)
        if isinstance(result.error, RegistryRejectedError) and result.error.status_code == 404:
            raise DocumentNotFoundError(identifier)
        if result.error is not None:
            raise result.error
        assert resp is not None

        try:
            data: Any = resp.json()
        except ValueError as e:
            raise EncodingError(f"Registry returned invalid JSON for {identifier}") from e
        document = data.get("document") if isinstance(data, dict) else None
        if not document:
            raise DocumentNotFoundError(identifier)
        try:
            return DidDocument.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            raise EncodingError(f"Registry returned a malformed document for {identifier}: {e}") from e
