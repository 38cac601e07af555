"""Protocol interfaces used by the sequencer and the profile manager."""

from __future__ import annotations

from queue import Queue
from typing import Callable, Protocol

from models import AudioFrame, InputEvent

PhraseCallback = Callable[[str], None]


class InputInjector(Protocol):
    def send_input(self, event: InputEvent) -> int:
        """Inject one event; return the number of accepted events (0 on failure)."""
        ...

    def last_error(self) -> int: ...


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class RecognizerAdapter(Protocol):
    def start(
        self,
        audio_queue: Queue[AudioFrame | None],
        on_phrase: PhraseCallback,
    ) -> None: ...

    def stop(self) -> None: ...


RecognizerFactory = Callable[[tuple[str, ...]], RecognizerAdapter]
RecorderFactory = Callable[[], Recorder]


class ConfigStore(Protocol):
    def get_hold_delay_s(self) -> float: ...

    def set_hold_delay_s(self, value: float) -> None: ...

    def get_default_profile(self) -> str: ...

    def set_default_profile(self, profile_id: str) -> None: ...

    def get_model_path(self) -> str: ...

    def set_model_path(self, path: str) -> None: ...

    def get_profiles_path(self) -> str: ...

    def get_injector_backend(self) -> str: ...

    def get_log_level(self) -> str: ...
