from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pinvault.flows.pin_entry import PinEntryFlow
from pinvault.models.biometric import BiometricInfo
from pinvault.models.flow import FlowEvent
from pinvault.models.recovery import RemoteResult, UserContact


class FakeTimer:
    def __init__(self, interval, callback) -> None:
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


class TimerRecorder:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, callback) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class EventRecorder:
    def __init__(self) -> None:
        self.events: list[FlowEvent] = []

    def __call__(self, event: FlowEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.type.value for e in self.events]

    def last(self) -> FlowEvent:
        return self.events[-1]


@pytest.fixture()
def events() -> EventRecorder:
    return EventRecorder()


@pytest.fixture()
def timers() -> TimerRecorder:
    return TimerRecorder()


@pytest.fixture()
def user() -> UserContact:
    return UserContact(id="user-42", email="ana@example.com", phone="+996555000111")


@pytest.fixture()
def reset_client():
    client = MagicMock()
    client.send_code.return_value = RemoteResult(success=True)
    client.complete.return_value = RemoteResult(success=True)
    return client


@pytest.fixture()
def biometric():
    bio = MagicMock()
    bio.get_info.return_value = BiometricInfo(available=True, is_setup=True, type_name="Face ID")
    return bio


@pytest.fixture()
def make_flow(authenticator, user, events, timers, clock, reset_client, biometric):
    def _make(**overrides) -> PinEntryFlow:
        kwargs = dict(
            notify=events,
            biometric=biometric,
            reset_client=reset_client,
            clock=clock,
            timer_factory=timers,
        )
        kwargs.update(overrides)
        return PinEntryFlow(authenticator, user, **kwargs)

    return _make
