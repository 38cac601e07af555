"""Recognition session lifecycle and the process-wide application state."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from queue import Queue
from typing import Optional

from interfaces import PhraseCallback, Recorder, RecognizerAdapter
from logger import setup_logger
from models import AudioFrame, ProfileState

logger = setup_logger(__name__)


class RecognitionSession:
    """One live recognizer plus its microphone feed, bound to a single profile."""

    def __init__(
        self,
        profile_id: str,
        grammar: tuple[str, ...],
        recognizer: RecognizerAdapter,
        recorder: Recorder,
        on_phrase: PhraseCallback,
        queue_maxsize: int = 50,
    ) -> None:
        self.profile_id = profile_id
        self.grammar = grammar
        self._recognizer = recognizer
        self._recorder = recorder
        self._on_phrase = on_phrase
        self._audio_queue: Queue[AudioFrame | None] = Queue(maxsize=queue_maxsize)
        self._lock = threading.Lock()
        self._listening = False
        self._disposed = False

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        with self._lock:
            if self._disposed:
                raise RuntimeError(f"session for {self.profile_id} is disposed")
            if self._listening:
                return
            self._recognizer.start(self._audio_queue, self._deliver)
            self._recorder.start(self._audio_queue)
            self._listening = True

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._listening = False
            self._safe_stop_recorder()
            self._safe_stop_recognizer()

    def _deliver(self, phrase: str) -> None:
        # Late results from a torn-down recognizer must not reach the new profile.
        if self._disposed:
            logger.debug("Dropped '%s' from disposed %s session", phrase, self.profile_id)
            return
        self._on_phrase(phrase)

    def _safe_stop_recorder(self) -> None:
        try:
            self._recorder.stop()
        except Exception as exc:
            logger.warning("Stopping recorder for %s failed: %s", self.profile_id, exc)

    def _safe_stop_recognizer(self) -> None:
        try:
            self._recognizer.stop()
        except Exception as exc:
            logger.warning("Stopping recognizer for %s failed: %s", self.profile_id, exc)


@dataclass
class ApplicationState:
    profile_id: Optional[str] = None
    status: ProfileState = ProfileState.UNINITIALIZED
    session: Optional[RecognitionSession] = None
    running: bool = True
    stopped: threading.Event = field(default_factory=threading.Event)

    def request_stop(self) -> None:
        self.running = False
        self.stopped.set()
