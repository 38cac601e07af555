"""Ordered execution of keystrokes against an input injector."""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional

from errors import UNKNOWN_ERROR_CODE
from interfaces import InputInjector
from logger import setup_logger
from models import (
    EventOutcome,
    ExecutionReport,
    InputEvent,
    KeyAction,
    KeyStroke,
    StepOutcome,
    StepStatus,
    describe,
    first_error,
)

logger = setup_logger(__name__)

LineCallback = Callable[[str], None]


class InputSequencer:
    """Runs keystrokes one event at a time, holding each key for ``hold_delay_s``.

    A rejected event is recorded and execution moves on; a stuck key never
    blocks the rest of a macro.
    """

    def __init__(
        self,
        injector: InputInjector,
        hold_delay_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        on_line: Optional[LineCallback] = None,
    ) -> None:
        if hold_delay_s < 0:
            raise ValueError("hold_delay_s must be >= 0")
        self._injector = injector
        self._hold_delay_s = hold_delay_s
        self._sleep = sleep
        self._on_line = on_line

    @property
    def hold_delay_s(self) -> float:
        return self._hold_delay_s

    def execute(self, steps: Iterable[KeyStroke]) -> ExecutionReport:
        report = ExecutionReport()
        for index, keystroke in enumerate(steps):
            press = self._inject(keystroke.press)
            self._sleep(self._hold_delay_s)
            release = self._inject(keystroke.release)
            report.events.extend((press, release))

            failure = first_error((press, release))
            if failure is None:
                report.steps.append(StepOutcome(index, keystroke, StepStatus.SUCCEEDED))
            else:
                report.steps.append(
                    StepOutcome(index, keystroke, StepStatus.FAILED, failure.error_code)
                )
        return report

    def _inject(self, event: InputEvent) -> EventOutcome:
        try:
            accepted = self._injector.send_input(event)
        except Exception as exc:
            line = f"Sending {describe(event)} raised: {exc}"
            return self._emit(EventOutcome(event, False, UNKNOWN_ERROR_CODE, line))

        if accepted == 0:
            code = self._safe_last_error()
            line = f"SendInput failed for {describe(event)} with error code {code}"
            return self._emit(EventOutcome(event, False, code, line))

        kind = "key-down" if event.action == KeyAction.PRESS else "key-up"
        line = f"Sent {kind} event {describe(event)} successfully"
        return self._emit(EventOutcome(event, True, 0, line))

    def _safe_last_error(self) -> int:
        try:
            return int(self._injector.last_error())
        except Exception:
            return UNKNOWN_ERROR_CODE

    def _emit(self, outcome: EventOutcome) -> EventOutcome:
        if outcome.succeeded:
            logger.info(outcome.line)
        else:
            logger.warning(outcome.line)
        if self._on_line:
            self._on_line(outcome.line)
        return outcome
