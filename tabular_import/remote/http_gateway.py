from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from ..models.config_models import ApiConfig, ImportConfig
from ..models.reference import ReferenceEntity
from .gateway import GatewayError, SubmissionError

"""HTTP record gateway (aiohttp).

POSTs one JSON payload per record to kinds.<kind>.create_endpoint and GETs
reference entities from kinds.<kind>.reference_endpoint. Timeouts are the
client timeout configured in api.timeout_seconds; nothing is retried.
"""

logger = logging.getLogger(__name__)

# 一覧 API のレスポンス包み (DRF pagination など)
_LIST_KEYS = ("results", "data", "items")


def _join(base_url: str, endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return base_url.rstrip("/") + "/" + endpoint.lstrip("/")


def extract_reason(body: Any) -> str | None:
    """Pull the remote failure reason out of a JSON error body."""
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        # field errors: {"name": ["already exists"]}
        parts = []
        for key, value in body.items():
            if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
                parts.append(f"{key}: {' '.join(value)}")
        if parts:
            return "; ".join(parts)
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


def _entities_from(body: Any) -> list[ReferenceEntity]:
    items = body
    if isinstance(body, dict):
        for key in _LIST_KEYS:
            if isinstance(body.get(key), list):
                items = body[key]
                break
    if not isinstance(items, list):
        raise GatewayError(f"unexpected reference list payload: {type(body).__name__}")
    entities: list[ReferenceEntity] = []
    for item in items:
        if not isinstance(item, dict) or "id" not in item:
            continue
        name = item.get("name", item.get("display_name"))
        if name is None:
            continue
        try:
            entity_id = int(item["id"])
        except (TypeError, ValueError) as e:
            raise GatewayError(f"reference entity id is not an integer: {item['id']!r}") from e
        entities.append(ReferenceEntity(id=entity_id, display_name=str(name)))
    return entities


class HttpRecordGateway:
    """aiohttp based gateway. Use as an async context manager or call close()."""

    def __init__(self, config: ImportConfig, session: aiohttp.ClientSession | None = None) -> None:
        if not config.api.base_url:
            raise GatewayError("api.base_url (or IMPORT_API_URL) is not configured")
        self._config = config
        self._api: ApiConfig = config.api
        self._session = session
        self._owns_session = session is None

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api.token:
            headers["Authorization"] = f"Bearer {self._api.token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self._api.timeout_seconds),
            )
        return self._session

    def _endpoint(self, kind: str, attr: str) -> str:
        endpoint = getattr(self._config.kind(kind), attr)
        if not endpoint:
            raise GatewayError(f"kinds.{kind}.{attr} is not configured")
        return _join(self._api.base_url or "", endpoint)

    async def list_reference_entities(self, kind: str) -> list[ReferenceEntity]:
        if not self._config.kind(kind).reference_endpoint:
            return []
        url = self._endpoint(kind, "reference_endpoint")
        try:
            async with self._get_session().get(url) as response:
                if not 200 <= response.status < 300:
                    text = await response.text()
                    raise GatewayError(f"reference listing failed ({response.status}): {text[:200]}")
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise GatewayError(f"reference listing failed: response is not JSON ({e})") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GatewayError(f"reference listing failed: {e}") from e
        entities = _entities_from(body)
        logger.debug("kind=%s reference entities=%d url=%s", kind, len(entities), url)
        return entities

    async def create_record(self, kind: str, payload: Mapping[str, Any]) -> None:
        url = self._endpoint(kind, "create_endpoint")
        try:
            async with self._get_session().post(url, json=dict(payload)) as response:
                if 200 <= response.status < 300:
                    return
                try:
                    body: Any = await response.json(content_type=None)
                except ValueError:
                    body = await response.text()
                reason = extract_reason(body)
                logger.debug("kind=%s create failed status=%d reason=%s", kind, response.status, reason)
                raise SubmissionError(reason)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionError(str(e) or type(e).__name__) from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> HttpRecordGateway:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
