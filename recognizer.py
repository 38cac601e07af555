"""Grammar-constrained speech recognition using vosk.

Each session gets its own ``KaldiRecognizer`` compiled with the profile's
phrases, so only those phrases (or ``[unk]``) can come back. The acoustic
model itself is large; it is loaded once per path and shared by every
session.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Callable, Optional

from interfaces import PhraseCallback, RecognizerFactory
from logger import setup_logger
from models import AudioFrame

try:
    import vosk
except Exception:  # pragma: no cover
    vosk = None  # type: ignore

logger = setup_logger(__name__)

UNKNOWN_TOKEN = "[unk]"

_models: dict[str, Any] = {}
_models_lock = threading.Lock()


def load_model(model_path: str) -> Any:
    """Load (or reuse) the vosk model stored at ``model_path``."""
    if vosk is None:
        raise RuntimeError("vosk is not installed")
    if not model_path:
        raise RuntimeError("no vosk model path configured")
    key = str(Path(model_path).expanduser().resolve())
    with _models_lock:
        model = _models.get(key)
        if model is None:
            if not Path(key).is_dir():
                raise RuntimeError(f"vosk model not found at {key}")
            vosk.SetLogLevel(-1)
            logger.info("Loading vosk model from %s", key)
            model = vosk.Model(key)
            _models[key] = model
    return model


def grammar_json(grammar: tuple[str, ...]) -> str:
    return json.dumps(list(grammar) + [UNKNOWN_TOKEN], ensure_ascii=False)


def extract_phrase(result: str) -> str:
    """Pull the recognized text out of a vosk JSON result; "" when nothing matched."""
    try:
        data = json.loads(result)
    except (json.JSONDecodeError, TypeError):
        return ""
    if not isinstance(data, dict):
        return ""
    text = str(data.get("text", "")).strip()
    if not text or text == UNKNOWN_TOKEN:
        return ""
    return text


class VoskRecognizerAdapter:
    def __init__(self, model: Any, grammar: tuple[str, ...], sample_rate: int = 16000) -> None:
        if vosk is None:
            raise RuntimeError("vosk is not installed")
        if not grammar:
            raise ValueError("grammar is empty")
        self.grammar = grammar
        self._recognizer = vosk.KaldiRecognizer(model, sample_rate, grammar_json(grammar))
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._audio_queue: Optional[Queue[AudioFrame | None]] = None
        self._on_phrase: Optional[PhraseCallback] = None

    def start(
        self,
        audio_queue: Queue[AudioFrame | None],
        on_phrase: PhraseCallback,
    ) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._audio_queue = audio_queue
        self._on_phrase = on_phrase
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name="recognizer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=0.5)

    def _worker(self) -> None:
        if self._audio_queue is None or self._on_phrase is None:
            return

        while not self._stop_event.is_set():
            try:
                frame = self._audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:  # Sentinel
                break
            if self._recognizer.AcceptWaveform(frame.pcm16_bytes):
                self._emit(self._recognizer.Result())

        if not self._stop_event.is_set():
            self._emit(self._recognizer.FinalResult())

    def _emit(self, result: str) -> None:
        phrase = extract_phrase(result)
        if phrase and self._on_phrase is not None:
            self._on_phrase(phrase)


def vosk_recognizer_factory(
    model_path: str,
    sample_rate: int = 16000,
    loader: Callable[[str], Any] = load_model,
) -> RecognizerFactory:
    """Build a factory that compiles a fresh recognizer for each grammar."""

    def factory(grammar: tuple[str, ...]) -> VoskRecognizerAdapter:
        return VoskRecognizerAdapter(loader(model_path), grammar, sample_rate)

    return factory
