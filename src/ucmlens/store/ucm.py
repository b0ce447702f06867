"""Definition store backed by the UCM codebase HTTP API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import requests

from ucmlens.exceptions import StoreError, StoreUnavailableError
from ucmlens.models import (
    DefinitionSummary,
    DefinitionType,
    Scope,
    SearchResult,
    SourceSegment,
)
from ucmlens.store.base import DefinitionStore

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


class UCMStore(DefinitionStore):
    """Talks to ``/codebase/api/projects/{project}/branches/{branch}/...``.

    ``requests`` is blocking, so every call is pushed onto a worker thread to
    keep the event loop free.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5858/codebase/api",
        timeout: float = 10.0,
        suffixify_bindings: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.suffixify_bindings = suffixify_bindings
        self._session = session or requests.Session()

    def _branch_url(self, scope: Scope, endpoint: str) -> str:
        return (
            f"{self.base_url}/projects/{quote(scope.project, safe='')}"
            f"/branches/{quote(scope.branch, safe='')}/{endpoint}"
        )

    def _get(self, url: str, params: dict[str, str]) -> requests.Response:
        try:
            return self._session.get(url, params=params, timeout=self.timeout)
        except requests.ConnectionError as e:
            raise StoreUnavailableError(self.base_url) from e
        except requests.RequestException as e:
            raise StoreError(f"Request to {url} failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response, what: str) -> Any:
        if not response.ok:
            raise StoreError(f"UCM API error {response.status_code} while {what}")
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Malformed response while {what}: {e}") from e

    async def get_definition(self, scope: Scope, name: str) -> DefinitionSummary | None:
        url = self._branch_url(scope, "getDefinition")
        params = {
            "names": name,
            "suffixifyBindings": "true" if self.suffixify_bindings else "false",
        }
        response = await asyncio.to_thread(self._get, url, params)
        if response.status_code == HTTP_NOT_FOUND:
            return None
        payload = self._json(response, f"loading definition {name!r}")
        try:
            return parse_definition_response(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unexpected getDefinition payload for {name!r}: {e}") from e

    async def find_definitions(
        self, scope: Scope, query: str, limit: int
    ) -> list[SearchResult]:
        url = self._branch_url(scope, "find")
        params = {"query": query, "limit": str(limit)}
        response = await asyncio.to_thread(self._get, url, params)
        payload = self._json(response, f"searching for {query!r}")
        try:
            return parse_find_response(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Unexpected find payload for {query!r}: {e}") from e

    async def close(self) -> None:
        self._session.close()


def _segments(raw: list[dict] | None) -> list[SourceSegment]:
    return [
        SourceSegment(segment=seg.get("segment", ""), annotation=seg.get("annotation"))
        for seg in raw or []
    ]


def parse_definition_response(payload: dict) -> DefinitionSummary | None:
    """Convert a getDefinition payload. Term definitions win over types."""
    terms: dict = payload.get("termDefinitions") or {}
    for hash_, detail in terms.items():
        signature = "".join(
            seg.get("segment", "") for seg in detail.get("signature") or []
        )
        return DefinitionSummary(
            name=detail["bestTermName"],
            hash=hash_,
            type=DefinitionType.TERM,
            signature=signature or None,
            segments=_segments(detail["termDefinition"].get("contents")),
            doc=detail.get("termDocs"),
            tag=detail.get("termTag"),
        )

    types: dict = payload.get("typeDefinitions") or {}
    for hash_, detail in types.items():
        return DefinitionSummary(
            name=detail["bestTypeName"],
            hash=hash_,
            type=DefinitionType.TYPE,
            segments=_segments(detail["typeDefinition"].get("contents")),
        )

    return None


def parse_find_response(payload: list) -> list[SearchResult]:
    """Convert ``[[score, FoundTermResult | FoundTypeResult], ...]``.

    Uses the full termName/typeName rather than the shortened best name.
    """
    results: list[SearchResult] = []
    for _score, item in payload:
        tag = item.get("tag")
        contents = item.get("contents", {})
        if tag == "FoundTermResult":
            named = contents["namedTerm"]
            results.append(
                SearchResult(
                    name=named["termName"],
                    type=DefinitionType.TERM,
                    hash=named["termHash"],
                )
            )
        elif tag == "FoundTypeResult":
            named = contents["namedType"]
            results.append(
                SearchResult(
                    name=named["typeName"],
                    type=DefinitionType.TYPE,
                    hash=named["typeHash"],
                )
            )
        else:
            logger.debug("Skipping unknown search result tag %r", tag)
    return results
