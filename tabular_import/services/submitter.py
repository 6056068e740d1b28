from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from ..layouts.base import ImportLayout
from ..models.processing_result import ImportOutcome
from ..models.validation_result import ValidationResult
from ..remote.gateway import GatewayError, RecordGateway, SubmissionError
from .progress import SubmissionProgress

"""Batch submitter.

Ordering guarantee: valid rows are submitted strictly one after another in
source order. Each create call is awaited to completion (success or failure)
before the next one is issued, so outcomes and progress updates always follow
row order and the remote endpoint never sees more than one request from a run
at a time. Do not turn this loop into concurrent dispatch (gather / tasks).

A failed row never stops the run and nothing is retried.
"""

__all__ = [
    "BatchSubmitter",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SubmissionProgress], None]


class BatchSubmitter:
    def __init__(
        self,
        gateway: RecordGateway,
        layout: ImportLayout,
        *,
        pause_seconds: float = 0.0,
        context: Mapping[str, Any] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.gateway = gateway
        self.layout = layout
        self.pause_seconds = pause_seconds
        self.context = dict(context or {})
        self._sleep = sleep

    @property
    def default_error(self) -> str:
        return f"Failed to create {self.layout.noun}"

    async def _submit_one(self, result: ValidationResult) -> ImportOutcome:
        label = self.layout.label(result.data)
        payload = self.layout.to_payload(result.data, self.context)
        try:
            await self.gateway.create_record(self.layout.kind, payload)
        except SubmissionError as e:
            message = e.reason or self.default_error
            logger.debug("row=%d create failed: %s", result.row, message)
            return ImportOutcome(row=result.row, label=label, error=message)
        except GatewayError:
            raise
        except Exception:
            logger.exception("row=%d unexpected gateway failure", result.row)
            return ImportOutcome(row=result.row, label=label, error=self.default_error)
        return ImportOutcome(row=result.row, label=label)

    async def submit(
        self,
        results: Sequence[ValidationResult],
        on_progress: ProgressCallback | None = None,
    ) -> list[ImportOutcome]:
        """Submit every valid result in order; invalid results are skipped.

        on_progress receives SubmissionProgress(attempted, total) after each
        row; the last call always has attempted == total.
        GatewayError (gateway unusable) propagates and ends the run.
        """
        valid = [r for r in results if r.is_valid]
        total = len(valid)
        outcomes: list[ImportOutcome] = []
        if on_progress is not None:
            on_progress(SubmissionProgress(attempted=0, total=total))

        for index, result in enumerate(valid):
            if index and self.pause_seconds > 0:
                await self._sleep(self.pause_seconds)
            outcomes.append(await self._submit_one(result))
            if on_progress is not None:
                on_progress(SubmissionProgress(attempted=len(outcomes), total=total))

        logger.debug(
            "kind=%s submitted=%d failed=%d",
            self.layout.kind,
            len(outcomes),
            sum(1 for o in outcomes if not o.succeeded),
        )
        return outcomes
