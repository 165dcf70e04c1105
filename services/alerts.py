"""Local alarm and outbound webhook for the newest reading."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, TextIO

import httpx

from models.records import LevelTier, SensorRecord
from services.classifier import TRASH_THRESHOLD

logger = logging.getLogger(__name__)

TRASH_EVENT = "TRASH_DETECTED_ALARM"
HIGH_WATER_EVENT = "HIGH_WATER_ALERT"


class AudioAlarm(Protocol):
    def play(self) -> None: ...


class TerminalBell:
    """Rings the terminal bell on the server's console."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def play(self) -> None:
        stream = self._stream or sys.stderr
        stream.write("\a")
        stream.flush()


@dataclass
class AlertEvent:
    """An alert condition raised by the newest record."""

    event: str
    payload: Dict[str, Any] = field(default_factory=dict)
    notified: bool = False


@dataclass
class AlertCooldownState:
    last_sent_at: Optional[float] = None

    def ready(self, now: float, cooldown: float) -> bool:
        return self.last_sent_at is None or now - self.last_sent_at > cooldown


def triggered_events(record: SensorRecord) -> List[AlertEvent]:
    events: List[AlertEvent] = []
    if record.distance >= TRASH_THRESHOLD:
        events.append(
            AlertEvent(
                event=TRASH_EVENT,
                payload={"tof_value": record.distance, "hydro_level": record.level.value},
            )
        )
    if record.level is LevelTier.high:
        events.append(
            AlertEvent(
                event=HIGH_WATER_EVENT,
                payload={
                    "current_level": record.level.value,
                    "trash_status": record.detection.value,
                },
            )
        )
    return events


class AlertDispatcher:
    """Raises the alarm and notifies the webhook, at most once per cooldown.

    The cooldown is shared by both alert kinds and is stamped as soon as the
    POST is issued. The POST itself runs as a background task whose response is
    never read; if it cannot be sent at all the stamp is rolled back.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        webhook_url: Optional[str],
        location: str,
        cooldown: float = 300.0,
        audio: AudioAlarm | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.webhook_url = webhook_url
        self.location = location
        self.cooldown = cooldown
        self.audio = audio if audio is not None else TerminalBell()
        self.cooldown_state = AlertCooldownState()
        self._clock = clock
        self._pending: Set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def evaluate(
        self, latest: Optional[SensorRecord], *, sound_allowed: bool = False
    ) -> List[AlertEvent]:
        if latest is None:
            return []

        events = triggered_events(latest)
        for alert in events:
            if sound_allowed:
                self._play_alarm()
            alert.notified = self._notify(alert)
        return events

    async def drain(self) -> None:
        """Wait for every webhook POST issued so far to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        """Abandon webhook POSTs that are still in flight."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    def _play_alarm(self) -> None:
        try:
            self.audio.play()
        except (OSError, ValueError) as exc:
            logger.warning("Audio alarm failed.", extra={"reason": str(exc)})

    def _notify(self, alert: AlertEvent) -> bool:
        if not self.webhook_url:
            return False

        now = self._clock()
        if not self.cooldown_state.ready(now, self.cooldown):
            logger.debug("Webhook suppressed by cooldown.", extra={"event": alert.event})
            return False

        body = {
            "event": alert.event,
            **alert.payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "location": self.location,
        }
        previous = self.cooldown_state.last_sent_at
        self.cooldown_state.last_sent_at = now
        task = asyncio.create_task(self._post(alert.event, body, now, previous))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _post(
        self,
        event: str,
        body: Dict[str, Any],
        stamped_at: float,
        previous: Optional[float],
    ) -> None:
        try:
            await self.client.post(self.webhook_url, json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "Webhook delivery failed.",
                extra={"event": event, "reason": str(exc)},
            )
            if self.cooldown_state.last_sent_at == stamped_at:
                self.cooldown_state.last_sent_at = previous
            return

        logger.info("Webhook notified.", extra={"event": event})
