# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""In-memory DID registry speaking the registry HTTP protocol.

Useful for tests and offline work: mount it behind an ``httpx.MockTransport``
and point a :class:`~didforge.registry.client.RegistryClient` at
:attr:`EphemeralRegistry.url`::

    registry = EphemeralRegistry()
    client = RegistryClient(transport=registry.transport())
    client.submit(registry.url, doc.id, doc)

Re-submitting an identical document is idempotent; a different document for a
registered DID is answered with 409.
"""

from __future__ import annotations

import json
import threading
from typing import Any

import httpx

from ..identity.document import is_valid_did
from .client import API_PREFIX

_DIDS_PATH = f"{API_PREFIX}/dids"


def _error(status_code: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"success": False, "error": {"code": code, "message": message}})


class EphemeralRegistry:
    """Thread-safe dictionary of DID -> document behind an HTTP handler."""

    url = "http://registry.ephemeral"

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    @property
    def records(self) -> dict[str, dict[str, Any]]:
        """Snapshot of registered documents."""
        with self._lock:
            return dict(self._documents)

    def __contains__(self, did: object) -> bool:
        with self._lock:
            return did in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == _DIDS_PATH:
            if request.method != "POST":
                return _error(405, "METHOD_NOT_ALLOWED", f"{request.method} not allowed")
            return self._create(request)
        if path.startswith(_DIDS_PATH + "/"):
            if request.method != "GET":
                return _error(405, "METHOD_NOT_ALLOWED", f"{request.method} not allowed")
            return self._read(path[len(_DIDS_PATH) + 1 :])
        return _error(404, "NOT_FOUND", f"No route for {path}")

    def _create(self, request: httpx.Request) -> httpx.Response:
        try:
            body = json.loads(request.content)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error(400, "INVALID_JSON", "Request body is not JSON")
        if not isinstance(body, dict):
            return _error(400, "INVALID_REQUEST", "Request body must be an object")

        did = body.get("did")
        document = body.get("document")
        if not isinstance(did, str) or not is_valid_did(did):
            return _error(400, "INVALID_DID", f"Not a valid DID: {did!r}")
        if not isinstance(document, dict) or not document:
            return _error(400, "INVALID_DOCUMENT", "Document must be a non-empty object")

        with self._lock:
            existing = self._documents.get(did)
            if existing is None:
                self._documents[did] = document
                return httpx.Response(201, json={"success": True, "did": did, "created": True})
        if existing == document:
            return httpx.Response(200, json={"success": True, "did": did, "created": False})
        return _error(409, "DID_CONFLICT", f"{did} is already registered with a different document")

    def _read(self, did: str) -> httpx.Response:
        with self._lock:
            document = self._documents.get(did)
        if document is None:
            return _error(404, "NOT_FOUND", f"No document found associated with {did}")
        return httpx.Response(200, json={"success": True, "did": did, "document": document})
