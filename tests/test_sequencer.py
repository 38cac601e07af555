from __future__ import annotations

import pytest

from errors import UNKNOWN_ERROR_CODE
from models import Device, InputEvent, KeyAction, KeyStroke, StepStatus
from sequencer import InputSequencer


class FakeInjector:
    """Accepts every event unless its call index is listed in ``fail_calls``."""

    def __init__(self, fail_calls: set[int] | None = None, error_code: int = 5) -> None:
        self.fail_calls = fail_calls or set()
        self.error_code = error_code
        self.calls: list[InputEvent] = []
        self.timeline: list[tuple[str, object]] | None = None

    def send_input(self, event: InputEvent) -> int:
        index = len(self.calls)
        self.calls.append(event)
        if self.timeline is not None:
            self.timeline.append(("send", event.action))
        return 0 if index in self.fail_calls else 1

    def last_error(self) -> int:
        return self.error_code


class RaisingInjector:
    def __init__(self) -> None:
        self.calls = 0

    def send_input(self, event: InputEvent) -> int:
        self.calls += 1
        raise OSError("device unplugged")

    def last_error(self) -> int:
        return 0


def _sequencer(injector, **kwargs) -> tuple[InputSequencer, list[float]]:
    sleeps: list[float] = []
    sequencer = InputSequencer(injector, sleep=sleeps.append, **kwargs)
    return sequencer, sleeps


def test_execute_issues_press_release_pairs_in_order() -> None:
    injector = FakeInjector()
    sequencer, _ = _sequencer(injector, hold_delay_s=0.25)
    steps = [KeyStroke.of(0x11), KeyStroke.of(0x13), KeyStroke.of(0x31)]

    report = sequencer.execute(steps)

    assert len(injector.calls) == 6
    assert [e.action for e in injector.calls] == [KeyAction.PRESS, KeyAction.RELEASE] * 3
    assert [e.code for e in injector.calls] == [0x11, 0x11, 0x13, 0x13, 0x31, 0x31]
    assert report.succeeded is True
    assert len(report.events) == 6
    assert [s.status for s in report.steps] == [StepStatus.SUCCEEDED] * 3


def test_hold_delay_sits_between_press_and_release() -> None:
    injector = FakeInjector()
    timeline: list[tuple[str, object]] = []
    injector.timeline = timeline
    sequencer = InputSequencer(
        injector, hold_delay_s=0.5, sleep=lambda s: timeline.append(("sleep", s))
    )

    sequencer.execute([KeyStroke.of(0x11), KeyStroke.of(0x12)])

    assert timeline == [
        ("send", KeyAction.PRESS),
        ("sleep", 0.5),
        ("send", KeyAction.RELEASE),
        ("send", KeyAction.PRESS),
        ("sleep", 0.5),
        ("send", KeyAction.RELEASE),
    ]


def test_failed_press_still_releases_and_later_steps_run() -> None:
    injector = FakeInjector(fail_calls={0}, error_code=87)
    sequencer, _ = _sequencer(injector, hold_delay_s=0)

    report = sequencer.execute([KeyStroke.of(0x11), KeyStroke.of(0x13)])

    assert len(injector.calls) == 4
    assert injector.calls[1].action == KeyAction.RELEASE
    assert injector.calls[1].code == 0x11
    assert report.steps[0].status == StepStatus.FAILED
    assert report.steps[0].error_code == 87
    assert report.steps[1].status == StepStatus.SUCCEEDED
    assert report.events[0].succeeded is False
    assert report.events[1].succeeded is True
    assert "error code 87" in report.events[0].line
    assert report.succeeded is False
    assert [s.index for s in report.failed_steps] == [0]


def test_failed_release_marks_step_failed() -> None:
    injector = FakeInjector(fail_calls={1}, error_code=5)
    sequencer, _ = _sequencer(injector, hold_delay_s=0)

    report = sequencer.execute([KeyStroke.of(0x11)])

    assert report.steps[0].status == StepStatus.FAILED
    assert report.steps[0].error_code == 5


def test_injector_exception_is_recorded_not_raised() -> None:
    injector = RaisingInjector()
    sequencer, _ = _sequencer(injector, hold_delay_s=0)

    report = sequencer.execute([KeyStroke.of(0x11), KeyStroke.of(0x13)])

    assert injector.calls == 4
    assert all(outcome.error_code == UNKNOWN_ERROR_CODE for outcome in report.events)
    assert all(step.status == StepStatus.FAILED for step in report.steps)
    assert "device unplugged" in report.events[0].line


def test_lines_are_streamed_to_callback() -> None:
    lines: list[str] = []
    sequencer = InputSequencer(FakeInjector(), hold_delay_s=0, sleep=lambda s: None, on_line=lines.append)

    report = sequencer.execute([KeyStroke.of(0x11)])

    assert lines == report.lines
    assert len(lines) == 2
    assert "key-down" in lines[0]
    assert "key-up" in lines[1]


def test_empty_macro_does_nothing() -> None:
    injector = FakeInjector()
    sequencer, sleeps = _sequencer(injector)

    report = sequencer.execute([])

    assert injector.calls == []
    assert sleeps == []
    assert report.succeeded is True


def test_mouse_keystroke_uses_same_pairing() -> None:
    injector = FakeInjector()
    sequencer, _ = _sequencer(injector, hold_delay_s=0)

    sequencer.execute([KeyStroke.of(1, device=Device.MOUSE)])

    assert [(e.device, e.action) for e in injector.calls] == [
        (Device.MOUSE, KeyAction.PRESS),
        (Device.MOUSE, KeyAction.RELEASE),
    ]


def test_negative_hold_delay_is_rejected() -> None:
    with pytest.raises(ValueError):
        InputSequencer(FakeInjector(), hold_delay_s=-1)


def test_keystroke_rejects_mismatched_events() -> None:
    with pytest.raises(ValueError):
        KeyStroke(
            press=InputEvent(Device.KEYBOARD, 0x11, KeyAction.PRESS),
            release=InputEvent(Device.KEYBOARD, 0x12, KeyAction.RELEASE),
        )
    with pytest.raises(ValueError):
        KeyStroke(
            press=InputEvent(Device.KEYBOARD, 0x11, KeyAction.RELEASE),
            release=InputEvent(Device.KEYBOARD, 0x11, KeyAction.PRESS),
        )
