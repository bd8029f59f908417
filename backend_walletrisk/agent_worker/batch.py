"""
Batch scoring with bounded concurrency.

Fans single-address scoring out over an asyncio.Semaphore so that at most
`concurrency` scorings (provider fetch included) are in flight. Output slot
i always belongs to input i. One failing item never fails the batch: its
slot gets an error-tagged degraded result.

Cancellation is cooperative: once stop_event is set, items not yet started
are filled with error="cancelled"; items already running finish normally.
"""

from __future__ import annotations

import asyncio
import time
from typing import Sequence

from backend_walletrisk.agent_worker.pipeline import ScoringPipeline
from backend_walletrisk.analysis_engine.models import ScoreResult
from backend_walletrisk.core.exceptions import BatchItemError
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_CONCURRENCY = 6
CANCELLED_ERROR = "cancelled"


class BatchScheduler:
    """Order-preserving, fail-soft batch runner over a ScoringPipeline."""

    def __init__(self, pipeline: ScoringPipeline, concurrency: int = DEFAULT_BATCH_CONCURRENCY) -> None:
        self.pipeline = pipeline
        self.concurrency = max(1, int(concurrency))

    async def run(
        self,
        addresses: Sequence[str],
        network: str | None = None,
        *,
        concurrency: int | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> list[ScoreResult]:
        n = max(1, int(concurrency)) if concurrency else self.concurrency
        semaphore = asyncio.Semaphore(n)
        results: list[ScoreResult | None] = [None] * len(addresses)
        counts = {"ok": 0, "failed": 0, "cancelled": 0}
        started = time.monotonic()

        async def _score_slot(index: int, address: str) -> None:
            async with semaphore:
                if stop_event is not None and stop_event.is_set():
                    results[index] = self.pipeline.failed_result(address, network, CANCELLED_ERROR)
                    counts["cancelled"] += 1
                    return
                try:
                    results[index] = await self.pipeline.score(address, network)
                    counts["ok"] += 1
                except Exception as e:
                    err = BatchItemError(index, address, e)
                    logger.warning(
                        "batch_item_failed",
                        index=index,
                        address=address,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    results[index] = self.pipeline.failed_result(address, network, str(err))
                    counts["failed"] += 1

        await asyncio.gather(*(_score_slot(i, a) for i, a in enumerate(addresses)))

        logger.info(
            "batch_done",
            total=len(addresses),
            concurrency=n,
            elapsed_ms=round((time.monotonic() - started) * 1000, 2),
            **counts,
        )
        return results  # type: ignore[return-value]
