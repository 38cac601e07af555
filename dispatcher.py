"""Routes recognized phrases to profile switches and macro runs.

All work happens on one worker thread so a profile switch can never tear a
session down while a macro is still holding a key; a switch requested
mid-macro simply runs after it.
"""

from __future__ import annotations

import threading
from queue import Empty, Queue
from typing import Callable, Optional

from errors import DISPATCH_FAILED, MACRO_NOT_FOUND
from logger import setup_logger
from models import ExecutionReport
from profile_manager import ProfileManager
from profiles import ActionKind, ProfileCatalog, normalize_phrase
from registry import MacroRegistry
from sequencer import InputSequencer
from session import ApplicationState

logger = setup_logger(__name__)

ErrorCallback = Callable[[str, str], None]
ReportCallback = Callable[[str, ExecutionReport], None]


class RecognitionDispatcher:
    def __init__(
        self,
        state: ApplicationState,
        catalog: ProfileCatalog,
        manager: ProfileManager,
        registry: MacroRegistry,
        sequencer: InputSequencer,
        on_report: Optional[ReportCallback] = None,
        on_stop: Optional[Callable[[], None]] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._state = state
        self._catalog = catalog
        self._manager = manager
        self._registry = registry
        self._sequencer = sequencer
        self._on_report = on_report
        self._on_stop = on_stop
        self._on_error = on_error

        self._queue: Queue[str] = Queue()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def pending(self) -> int:
        return self._queue.unfinished_tasks

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name="dispatcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except Empty:
                break
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.info("Dropped %d queued phrase(s) on stop", dropped)

    def join(self) -> None:
        """Block until every queued phrase has been handled or dropped by stop()."""
        self._queue.join()

    def on_phrase_recognized(self, phrase: str) -> None:
        """Queue a phrase from the recognizer thread; never blocks on macro execution."""
        if self._stop_event.is_set():
            logger.debug("Dispatcher stopped, dropping '%s'", phrase)
            return
        self._queue.put(phrase)

    def handle_phrase(self, phrase: str) -> None:
        try:
            self._dispatch(phrase)
        except Exception as exc:
            self._emit_error(DISPATCH_FAILED, f"{phrase!r}: {exc}")

    def _worker(self) -> None:
        while not self._stop_event.is_set():
            try:
                phrase = self._queue.get(timeout=0.2)
            except Empty:
                continue
            try:
                self.handle_phrase(phrase)
            finally:
                self._queue.task_done()

    def _dispatch(self, phrase: str) -> None:
        logger.info("Recognized: %s", phrase)
        profile_id = self._state.profile_id
        profile = self._catalog.get(profile_id) if profile_id else None
        if profile is None:
            logger.debug("No active profile, ignoring '%s'", phrase)
            return

        action = profile.action_for(phrase)
        if action is None:
            logger.debug("'%s' is not a command in profile %s", normalize_phrase(phrase), profile.id)
            return

        if action.kind == ActionKind.SWITCH_PROFILE:
            logger.info("Switching to %s profile", action.target)
            self._manager.activate(action.target)
        elif action.kind == ActionKind.RUN_MACRO:
            self._run_macro(action.target)
        elif action.kind == ActionKind.STOP:
            logger.info("Stop requested")
            self._state.request_stop()
            if self._on_stop:
                self._on_stop()

    def _run_macro(self, name: str) -> None:
        macro = self._registry.lookup(name)
        if macro is None:
            self._emit_error(MACRO_NOT_FOUND, f"Macro '{name}' not found")
            return
        logger.info("Running macro '%s' (%d step(s))", name, len(macro.steps))
        report = self._sequencer.execute(macro.steps)
        if report.succeeded:
            logger.info("Macro '%s' done", name)
        else:
            logger.warning("Macro '%s' done with %d failed step(s)", name, len(report.failed_steps))
        if self._on_report:
            self._on_report(name, report)

    def _emit_error(self, code: str, message: str) -> None:
        logger.warning("%s: %s", code, message)
        if self._on_error:
            self._on_error(code, message)
