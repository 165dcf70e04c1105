"""Periodic retrieval of the published sheet."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Awaitable, Callable, Optional, Set

import httpx

from models.records import SensorRecord
from models.state import (
    DashboardState,
    begin_refresh,
    history_loaded,
    refresh_finished,
)
from services.alerts import AlertDispatcher
from services.parser import parse_feed
from services.store import DashboardStore
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

_RETRYABLE = (httpx.HTTPError, UnicodeDecodeError, ValueError)


class RefreshStatus(str, Enum):
    updated = "updated"
    superseded = "superseded"
    failed = "failed"


@dataclass(frozen=True)
class RefreshOutcome:
    status: RefreshStatus
    attempts: int
    record_count: int = 0


class FeedPoller:
    """Fetches the feed on a timer and republishes the parsed history.

    Every refresh takes a generation number. A refresh whose fetch finishes
    after a newer refresh has started is dropped, so a slow request can never
    overwrite fresher data.
    """

    def __init__(
        self,
        settings: Settings,
        store: DashboardStore | None = None,
        dispatcher: AlertDispatcher | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.client = client or httpx.AsyncClient(
            timeout=settings.http_timeout, follow_redirects=True
        )
        self.store = store or DashboardStore(
            DashboardState(audio_enabled=settings.audio_enabled)
        )
        self.dispatcher = dispatcher or AlertDispatcher(
            client=self.client,
            webhook_url=settings.webhook_url,
            location=settings.location,
            cooldown=settings.alert_cooldown,
        )
        self._sleep = sleep
        self._generation = 0
        self._timer: Optional[asyncio.Task[None]] = None
        self._inflight: Set[asyncio.Task[RefreshOutcome]] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def refresh(self) -> RefreshOutcome:
        """Fetch, parse and publish the feed, retrying with backoff on failure."""
        self._generation += 1
        generation = self._generation
        self.store.apply(begin_refresh)

        delay = self.settings.retry_delay
        attempts = self.settings.retry_attempts
        for attempt in range(1, attempts + 1):
            try:
                records = await self._fetch()
            except _RETRYABLE as exc:
                if generation != self._generation:
                    return RefreshOutcome(RefreshStatus.superseded, attempt)
                if attempt == attempts:
                    logger.warning(
                        "Feed fetch failed; giving up until the next poll.",
                        extra={"generation": generation, "attempt": attempt, "reason": str(exc)},
                    )
                    break
                logger.info(
                    "Feed fetch failed; retrying.",
                    extra={
                        "generation": generation,
                        "attempt": attempt,
                        "delay_s": delay,
                        "reason": str(exc),
                    },
                )
                await self._sleep(delay)
                delay *= 2
                if generation != self._generation:
                    return RefreshOutcome(RefreshStatus.superseded, attempt)
                continue

            if generation != self._generation:
                logger.debug(
                    "Discarding stale feed response.", extra={"generation": generation}
                )
                return RefreshOutcome(RefreshStatus.superseded, attempt, len(records))

            state = self.store.apply(history_loaded, records, datetime.now(timezone.utc))
            logger.debug(
                "Feed refreshed.",
                extra={"generation": generation, "record_count": len(records)},
            )
            await self._raise_alerts(state, generation)
            return RefreshOutcome(RefreshStatus.updated, attempt, len(records))

        self.store.apply(refresh_finished)
        return RefreshOutcome(RefreshStatus.failed, attempts)

    async def _raise_alerts(self, state: DashboardState, generation: int) -> None:
        try:
            await self.dispatcher.evaluate(state.latest, sound_allowed=state.sound_allowed)
        except Exception as exc:
            # The history is already published at this point.
            logger.warning(
                "Alert evaluation failed.",
                extra={"generation": generation, "reason": str(exc)},
            )

    async def _fetch(self) -> tuple[SensorRecord, ...]:
        cache_buster = {"t": str(int(time.time() * 1000))}
        response = await self.client.get(self.settings.feed_url, params=cache_buster)
        response.raise_for_status()
        text = response.content.decode("utf-8")
        return parse_feed(text)

    def start(self) -> None:
        """Refresh now and then every ``poll_interval`` seconds."""
        if self.running:
            return
        self._timer = asyncio.create_task(self._tick(), name="feed-poller")

    async def _tick(self) -> None:
        while True:
            task = asyncio.create_task(self.refresh())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(self.settings.poll_interval)

    async def stop(self) -> None:
        """Stop the timer, drop in-flight fetches and release the HTTP client."""
        # Bumping the generation makes any fetch still finishing look stale.
        self._generation += 1
        tasks = [task for task in (self._timer, *self._inflight) if task is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._inflight.clear()
        await self.dispatcher.close()
        await self.client.aclose()


@lru_cache
def build_default_poller() -> FeedPoller:
    """Factory that wires the poller from environment settings."""
    return FeedPoller(settings=get_settings())
