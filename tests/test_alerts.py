from __future__ import annotations

import asyncio
import json
import logging
from typing import List

import httpx

from services.alerts import (
    HIGH_WATER_EVENT,
    TRASH_EVENT,
    AlertDispatcher,
    TerminalBell,
    triggered_events,
)
from services.parser import parse_row

WEBHOOK = "https://hooks.example.test/alert"


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingAlarm:
    def __init__(self) -> None:
        self.plays = 0

    def play(self) -> None:
        self.plays += 1


class BrokenAlarm:
    def play(self) -> None:
        raise OSError("no audio device")


def _dispatcher(
    requests: List[httpx.Request],
    clock: FakeClock,
    alarm=None,
    fail: bool = False,
    webhook: str | None = WEBHOOK,
) -> AlertDispatcher:
    def handler(request: httpx.Request) -> httpx.Response:
        if fail:
            raise httpx.ConnectError("unreachable", request=request)
        requests.append(request)
        return httpx.Response(200)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AlertDispatcher(
        client=client,
        webhook_url=webhook,
        location="Node #001",
        cooldown=300.0,
        audio=alarm or RecordingAlarm(),
        clock=clock,
    )


def _evaluate(dispatcher: AlertDispatcher, record, **kwargs):
    """Evaluate a record and wait for the webhook POSTs it issued."""

    async def run():
        events = await dispatcher.evaluate(record, **kwargs)
        await dispatcher.drain()
        return events

    return asyncio.run(run())


TRASH_ONLY = parse_row("01-01-2024 10:00,CONNECTED,1200,LOW,NORMAL")
HIGH_ONLY = parse_row("01-01-2024 10:00,CONNECTED,100,HIGH,NORMAL")
BOTH = parse_row("01-01-2024 10:00,CONNECTED,1200,HIGH,ALERT")
QUIET = parse_row("01-01-2024 10:05,CONNECTED,500,LOW,NORMAL")


def test_triggered_events() -> None:
    assert [alert.event for alert in triggered_events(BOTH)] == [TRASH_EVENT, HIGH_WATER_EVENT]
    assert [alert.event for alert in triggered_events(HIGH_ONLY)] == [HIGH_WATER_EVENT]
    assert triggered_events(QUIET) == []


def test_webhook_body() -> None:
    requests: List[httpx.Request] = []
    dispatcher = _dispatcher(requests, FakeClock())

    _evaluate(dispatcher, TRASH_ONLY)

    assert len(requests) == 1
    body = json.loads(requests[0].content)
    assert requests[0].method == "POST"
    assert str(requests[0].url) == WEBHOOK
    assert body["event"] == TRASH_EVENT
    assert body["tof_value"] == 1200.0
    assert body["hydro_level"] == "LOW"
    assert body["location"] == "Node #001"
    assert body["timestamp"].endswith("+00:00")


def test_high_water_payload() -> None:
    requests: List[httpx.Request] = []
    dispatcher = _dispatcher(requests, FakeClock())

    _evaluate(dispatcher, HIGH_ONLY)

    body = json.loads(requests[0].content)
    assert body["event"] == HIGH_WATER_EVENT
    assert body["current_level"] == "HIGH"
    assert body["trash_status"] == "NOT DETECTED"


def test_cooldown_suppresses_within_window() -> None:
    requests: List[httpx.Request] = []
    clock = FakeClock()
    dispatcher = _dispatcher(requests, clock)

    _evaluate(dispatcher, TRASH_ONLY)
    clock.now += 100
    events = _evaluate(dispatcher, TRASH_ONLY)

    assert len(requests) == 1
    assert events[0].notified is False


def test_cooldown_expires() -> None:
    requests: List[httpx.Request] = []
    clock = FakeClock()
    dispatcher = _dispatcher(requests, clock)

    _evaluate(dispatcher, TRASH_ONLY)
    clock.now += 301
    _evaluate(dispatcher, TRASH_ONLY)

    assert len(requests) == 2


def test_cooldown_is_shared_between_triggers() -> None:
    requests: List[httpx.Request] = []
    clock = FakeClock()
    dispatcher = _dispatcher(requests, clock)

    events = _evaluate(dispatcher, BOTH)
    clock.now += 100
    _evaluate(dispatcher, HIGH_ONLY)

    assert [json.loads(request.content)["event"] for request in requests] == [TRASH_EVENT]
    assert [alert.notified for alert in events] == [True, False]


def test_quiet_record_sends_nothing() -> None:
    requests: List[httpx.Request] = []
    alarm = RecordingAlarm()
    dispatcher = _dispatcher(requests, FakeClock(), alarm=alarm)

    events = _evaluate(dispatcher, QUIET, sound_allowed=True)

    assert events == []
    assert requests == []
    assert alarm.plays == 0
    assert _evaluate(dispatcher, None) == []


def test_alarm_plays_only_when_allowed() -> None:
    requests: List[httpx.Request] = []
    alarm = RecordingAlarm()
    dispatcher = _dispatcher(requests, FakeClock(), alarm=alarm)

    _evaluate(dispatcher, BOTH)
    assert alarm.plays == 0

    _evaluate(dispatcher, BOTH, sound_allowed=True)
    assert alarm.plays == 2


def test_audio_failure_is_ignored(caplog) -> None:
    requests: List[httpx.Request] = []
    dispatcher = _dispatcher(requests, FakeClock(), alarm=BrokenAlarm())

    with caplog.at_level(logging.WARNING, logger="services.alerts"):
        _evaluate(dispatcher, TRASH_ONLY, sound_allowed=True)

    assert len(requests) == 1
    assert any("Audio alarm failed" in record.message for record in caplog.records)


def test_webhook_failure_is_logged_and_reopens_cooldown(caplog) -> None:
    clock = FakeClock()
    dispatcher = _dispatcher([], clock, fail=True)

    with caplog.at_level(logging.WARNING, logger="services.alerts"):
        events = _evaluate(dispatcher, TRASH_ONLY)

    assert events[0].notified is True
    assert dispatcher.cooldown_state.last_sent_at is None
    failures = [record for record in caplog.records if record.name == "services.alerts"]
    assert failures and failures[0].event == TRASH_EVENT


def test_malformed_webhook_url_is_logged_and_reopens_cooldown(caplog) -> None:
    requests: List[httpx.Request] = []
    dispatcher = _dispatcher(
        requests, FakeClock(), webhook="https://hooks.example.test:notaport/alert"
    )

    with caplog.at_level(logging.WARNING, logger="services.alerts"):
        events = _evaluate(dispatcher, TRASH_ONLY)

    assert requests == []
    assert [alert.event for alert in events] == [TRASH_EVENT]
    assert dispatcher.cooldown_state.last_sent_at is None
    assert any("Webhook delivery failed" in record.message for record in caplog.records)


def test_evaluate_does_not_wait_for_webhook_response() -> None:
    clock = FakeClock()

    async def scenario() -> None:
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200)

        dispatcher = AlertDispatcher(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            webhook_url=WEBHOOK,
            location="Node #001",
            clock=clock,
            audio=RecordingAlarm(),
        )

        events = await dispatcher.evaluate(TRASH_ONLY)

        assert events[0].notified is True
        assert dispatcher.pending == 1
        assert dispatcher.cooldown_state.last_sent_at == clock.now

        release.set()
        await dispatcher.drain()
        assert dispatcher.pending == 0

    asyncio.run(scenario())


def test_close_cancels_pending_webhooks() -> None:
    async def scenario() -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.Event().wait()
            return httpx.Response(200)

        dispatcher = AlertDispatcher(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            webhook_url=WEBHOOK,
            location="Node #001",
            clock=FakeClock(),
            audio=RecordingAlarm(),
        )

        await dispatcher.evaluate(BOTH)
        assert dispatcher.pending == 1

        await dispatcher.close()
        assert dispatcher.pending == 0

    asyncio.run(scenario())


def test_non_success_response_still_counts_as_sent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    clock = FakeClock()
    dispatcher = AlertDispatcher(
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        webhook_url=WEBHOOK,
        location="Node #001",
        clock=clock,
        audio=RecordingAlarm(),
    )

    events = _evaluate(dispatcher, TRASH_ONLY)

    assert events[0].notified is True
    assert dispatcher.cooldown_state.last_sent_at == clock.now


def test_missing_webhook_url_skips_outbound() -> None:
    requests: List[httpx.Request] = []
    alarm = RecordingAlarm()
    dispatcher = _dispatcher(requests, FakeClock(), alarm=alarm, webhook=None)

    events = _evaluate(dispatcher, TRASH_ONLY, sound_allowed=True)

    assert requests == []
    assert alarm.plays == 1
    assert events[0].notified is False


def test_terminal_bell_writes_bell_character(tmp_path) -> None:
    target = tmp_path / "bell.txt"
    with target.open("w") as stream:
        TerminalBell(stream).play()

    assert target.read_text() == "\a"
