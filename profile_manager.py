"""State-machine based profile orchestration."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from errors import PROFILE_NOT_FOUND, SESSION_BUILD_FAILED
from interfaces import PhraseCallback, RecognizerFactory, RecorderFactory
from logger import setup_logger
from models import ProfileState
from profiles import Profile, ProfileCatalog
from registry import MacroRegistry
from session import ApplicationState, RecognitionSession

logger = setup_logger(__name__)

StateCallback = Callable[[ProfileState, ProfileState], None]
ErrorCallback = Callable[[str, str], None]


class ProfileManager:
    """Owns the active profile and its single recognition session.

    Every activation, including re-activating the current profile, tears the
    old session down and builds a fresh one. A failed activation leaves the
    previous profile in place.
    """

    def __init__(
        self,
        state: ApplicationState,
        catalog: ProfileCatalog,
        registry: MacroRegistry,
        recognizer_factory: RecognizerFactory,
        recorder_factory: RecorderFactory,
        on_phrase: Optional[PhraseCallback] = None,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._state = state
        self._catalog = catalog
        self._registry = registry
        self._recognizer_factory = recognizer_factory
        self._recorder_factory = recorder_factory
        self._on_phrase = on_phrase
        self._on_state_change = on_state_change
        self._on_error = on_error
        self._lock = threading.RLock()

    @property
    def status(self) -> ProfileState:
        return self._state.status

    def current_profile(self) -> Optional[str]:
        return self._state.profile_id

    def set_phrase_handler(self, on_phrase: PhraseCallback) -> None:
        self._on_phrase = on_phrase

    def activate(self, profile_id: str) -> Optional[RecognitionSession]:
        with self._lock:
            if self._state.status == ProfileState.DISPOSED:
                logger.warning("Ignoring switch to %s after shutdown", profile_id)
                return None

            profile = self._catalog.get(profile_id)
            if profile is None:
                self._emit_error(PROFILE_NOT_FOUND, f"unknown profile {profile_id!r}")
                return None

            try:
                session = self._build_session(profile)
            except Exception as exc:
                self._emit_error(SESSION_BUILD_FAILED, f"{profile_id}: {exc}")
                return None

            previous = self._state.session
            previous_id = self._state.profile_id
            if previous is not None:
                previous.dispose()
                self._state.session = None

            try:
                self._registry.reset(profile_id)
                session.start()
            except Exception as exc:
                session.dispose()
                self._emit_error(SESSION_BUILD_FAILED, f"{profile_id}: {exc}")
                self._restore(previous_id)
                return None

            self._state.session = session
            self._state.profile_id = profile_id
            self._transition(ProfileState.ACTIVE)
            logger.info(
                "Voice Attack activated with profile %s. Listening for commands...", profile_id
            )
            return session

    def shutdown(self) -> None:
        with self._lock:
            if self._state.status == ProfileState.DISPOSED:
                return
            session = self._state.session
            self._state.session = None
            if session is not None:
                session.dispose()
            self._transition(ProfileState.DISPOSED)

    def _build_session(self, profile: Profile) -> RecognitionSession:
        grammar = profile.grammar
        recognizer = self._recognizer_factory(grammar)
        recorder = self._recorder_factory()
        return RecognitionSession(
            profile_id=profile.id,
            grammar=grammar,
            recognizer=recognizer,
            recorder=recorder,
            on_phrase=self._deliver,
        )

    def _restore(self, profile_id: Optional[str]) -> None:
        """Bring the previous profile back after a failed switch."""
        if profile_id is None:
            return
        profile = self._catalog.get(profile_id)
        if profile is None:
            return
        self._registry.reset(profile_id)
        session: Optional[RecognitionSession] = None
        try:
            session = self._build_session(profile)
            session.start()
        except Exception as exc:
            if session is not None:
                session.dispose()
            self._emit_error(SESSION_BUILD_FAILED, f"{profile_id}: restore failed: {exc}")
            return
        self._state.session = session
        logger.info("Restored profile %s", profile_id)

    def _deliver(self, phrase: str) -> None:
        if self._on_phrase:
            self._on_phrase(phrase)

    def _emit_error(self, code: str, message: str) -> None:
        logger.error("%s: %s", code, message)
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: ProfileState) -> None:
        from_state = self._state.status
        if from_state == to_state:
            return
        self._state.status = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
