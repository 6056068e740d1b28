from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from ..models.config_models import ImportConfig
from ..models.reference import ReferenceEntity

"""Record gateway contract and the dry-run implementation.

A gateway is the only way the pipeline talks to the outside world:
- list_reference_entities(kind): referenceable entities for an import kind
- create_record(kind, payload): create one record; failure raises SubmissionError
"""

__all__ = [
    "GatewayError",
    "SubmissionError",
    "RecordGateway",
    "DryRunGateway",
]


class GatewayError(Exception):
    """The gateway cannot be used at all (bad config, reference listing failed)."""


class SubmissionError(Exception):
    """The remote side rejected or failed to create one record.

    reason is the message reported by the remote side, None when it supplied none.
    """

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "record creation failed")
        self.reason = reason


class RecordGateway(Protocol):
    async def list_reference_entities(self, kind: str) -> list[ReferenceEntity]: ...

    async def create_record(self, kind: str, payload: Mapping[str, Any]) -> None: ...

    async def close(self) -> None: ...


class DryRunGateway:
    """Accepts every record without side effects.

    Reference entities come from the config (kinds.<kind>.reference_entities),
    so uploads can be validated and rehearsed without an API or database.
    """

    def __init__(self, config: ImportConfig | None = None) -> None:
        self._config = config or ImportConfig()
        self.created: list[tuple[str, dict[str, Any]]] = []

    async def list_reference_entities(self, kind: str) -> list[ReferenceEntity]:
        return list(self._config.kind(kind).reference_entities)

    async def create_record(self, kind: str, payload: Mapping[str, Any]) -> None:
        self.created.append((kind, dict(payload)))

    async def close(self) -> None:
        return None
