"""Minimal Typesense REST client used by indexing and search probes."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Iterable, Mapping

import httpx

from gutenindex.search.config import TypesenseSettings


LOGGER = logging.getLogger(__name__)

_API_KEY_HEADER = "X-TYPESENSE-API-KEY"


@dataclass(slots=True)
class SearchEngineError(RuntimeError):
    """Typesense answered, but not with what the operation needed."""

    status_code: int | None
    message: str

    def __str__(self) -> str:
        return f"{self.message} (status={self.status_code})"


@dataclass(slots=True)
class SearchEngineUnavailableError(RuntimeError):
    """Typesense could not be reached or reported itself unhealthy."""

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (url={self.url})"


@dataclass(frozen=True, slots=True)
class ImportResult:
    success: bool
    error: str | None = None
    document: str | None = None


def _parse_import_line(line: str) -> ImportResult:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        return ImportResult(success=False, error=f"Unparseable import result: {line[:200]}")
    if not isinstance(payload, dict):
        return ImportResult(success=False, error=f"Unexpected import result: {line[:200]}")
    if payload.get("success") is True:
        return ImportResult(success=True)
    return ImportResult(
        success=False,
        error=str(payload.get("error") or "unknown import error"),
        document=payload.get("document"),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:300] or response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase


class TypesenseClient:
    """Collections, bulk import, search and health over Typesense's HTTP API."""

    def __init__(self, settings: TypesenseSettings, *, transport: httpx.BaseTransport | None = None) -> None:
        self._settings = settings
        self._http = httpx.Client(
            base_url=settings.base_url,
            headers={_API_KEY_HEADER: settings.api_key},
            timeout=httpx.Timeout(settings.connection_timeout_seconds),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TypesenseClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise SearchEngineUnavailableError(url=f"{self.base_url}{path}", message=str(exc)) from exc

    def health(self) -> None:
        """Raise ``SearchEngineUnavailableError`` unless the node reports ok."""

        response = self._request("GET", "/health")
        ok = False
        if response.status_code == 200:
            try:
                ok = bool(response.json().get("ok"))
            except (ValueError, AttributeError):
                ok = False
        if not ok:
            raise SearchEngineUnavailableError(
                url=f"{self.base_url}/health",
                message=f"Typesense health check failed with HTTP {response.status_code}",
            )

    def delete_collection(self, name: str) -> bool:
        """Drop a collection; returns False when it did not exist."""

        response = self._request("DELETE", f"/collections/{name}")
        if response.status_code == 404:
            return False
        if not response.is_success:
            raise SearchEngineError(
                status_code=response.status_code,
                message=f"Failed to delete collection '{name}': {_error_message(response)}",
            )
        return True

    def create_collection(self, schema: Mapping[str, Any]) -> dict[str, Any]:
        response = self._request("POST", "/collections", json=dict(schema))
        if not response.is_success:
            raise SearchEngineError(
                status_code=response.status_code,
                message=f"Failed to create collection '{schema.get('name')}': {_error_message(response)}",
            )
        return response.json()

    def import_documents(
        self,
        name: str,
        documents: Iterable[Mapping[str, Any]],
        *,
        action: str = "create",
    ) -> list[ImportResult]:
        """Bulk-import documents as JSONL; one result per submitted document."""

        batch = list(documents)
        if not batch:
            return []

        body = "\n".join(json.dumps(document, ensure_ascii=False) for document in batch)
        response = self._request(
            "POST",
            f"/collections/{name}/documents/import",
            params={"action": action, "batch_size": len(batch)},
            content=body.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        if not response.is_success:
            raise SearchEngineError(
                status_code=response.status_code,
                message=f"Import into '{name}' failed: {_error_message(response)}",
            )

        results = [_parse_import_line(line) for line in response.text.splitlines() if line.strip()]
        if len(results) != len(batch):
            LOGGER.warning(
                "Import into '%s' returned %d results for %d documents",
                name,
                len(results),
                len(batch),
            )
        missing = len(batch) - len(results)
        if missing > 0:
            results.extend(ImportResult(success=False, error="No import result returned") for _ in range(missing))
        return results[: len(batch)]

    def search(self, name: str, params: Mapping[str, Any]) -> dict[str, Any]:
        response = self._request("GET", f"/collections/{name}/documents/search", params=dict(params))
        if not response.is_success:
            raise SearchEngineError(
                status_code=response.status_code,
                message=f"Search in '{name}' failed: {_error_message(response)}",
            )
        return response.json()
