"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional


class Device(str, Enum):
    MOUSE = "mouse"
    KEYBOARD = "keyboard"
    HARDWARE = "hardware"


class KeyAction(str, Enum):
    PRESS = "press"
    RELEASE = "release"


class ProfileState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    DISPOSED = "DISPOSED"


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InputEvent:
    device: Device
    code: int
    action: KeyAction
    extra: Any = None


@dataclass(frozen=True)
class KeyStroke:
    """A Press followed by a Release of the same device and code."""

    press: InputEvent
    release: InputEvent

    def __post_init__(self) -> None:
        if self.press.action != KeyAction.PRESS or self.release.action != KeyAction.RELEASE:
            raise ValueError("keystroke must be a press followed by a release")
        if self.press.device != self.release.device or self.press.code != self.release.code:
            raise ValueError(
                f"keystroke events disagree: {self.press.device.value}/{self.press.code:#x} "
                f"vs {self.release.device.value}/{self.release.code:#x}"
            )

    @classmethod
    def of(cls, code: int, device: Device = Device.KEYBOARD, extra: Any = None) -> "KeyStroke":
        return cls(
            press=InputEvent(device, code, KeyAction.PRESS, extra),
            release=InputEvent(device, code, KeyAction.RELEASE, extra),
        )

    @property
    def device(self) -> Device:
        return self.press.device

    @property
    def code(self) -> int:
        return self.press.code

    def events(self) -> tuple[InputEvent, InputEvent]:
        return (self.press, self.release)


@dataclass(frozen=True)
class Macro:
    name: str
    steps: tuple[KeyStroke, ...] = ()

    @classmethod
    def build(cls, name: str, steps: Iterable[KeyStroke]) -> "Macro":
        return cls(name=name, steps=tuple(steps))


@dataclass(frozen=True)
class EventOutcome:
    event: InputEvent
    succeeded: bool
    error_code: int = 0
    line: str = ""


@dataclass(frozen=True)
class StepOutcome:
    index: int
    keystroke: KeyStroke
    status: StepStatus
    error_code: int = 0


@dataclass
class ExecutionReport:
    events: list[EventOutcome] = field(default_factory=list)
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(step.status == StepStatus.SUCCEEDED for step in self.steps)

    @property
    def failed_steps(self) -> list[StepOutcome]:
        return [step for step in self.steps if step.status == StepStatus.FAILED]

    @property
    def lines(self) -> list[str]:
        return [outcome.line for outcome in self.events]


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


def describe(event: InputEvent) -> str:
    return f"{event.device.value} {event.action.value} {event.code:#04x}"


def first_error(outcomes: Iterable[EventOutcome]) -> Optional[EventOutcome]:
    for outcome in outcomes:
        if not outcome.succeeded:
            return outcome
    return None
