"""Application entrypoint."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from config import JsonConfigStore
from dispatcher import RecognitionDispatcher
from errors import ProfileError
from injector import create_injector
from interfaces import InputInjector, RecognizerFactory, RecorderFactory
from logger import set_log_level, setup_logger
from models import ExecutionReport, ProfileState
from profile_manager import ProfileManager
from profiles import ProfileCatalog, default_catalog, load_profiles
from recognizer import vosk_recognizer_factory
from recorder import SoundDeviceRecorder
from registry import MacroRegistry
from sequencer import InputSequencer
from session import ApplicationState

logger = setup_logger(__name__)


class App:
    def __init__(
        self,
        catalog: ProfileCatalog,
        injector: InputInjector,
        recognizer_factory: RecognizerFactory,
        recorder_factory: RecorderFactory,
        hold_delay_s: float = 1.0,
    ) -> None:
        self.state = ApplicationState()
        self.registry = MacroRegistry(catalog)
        self.sequencer = InputSequencer(injector, hold_delay_s=hold_delay_s)
        self.manager = ProfileManager(
            state=self.state,
            catalog=catalog,
            registry=self.registry,
            recognizer_factory=recognizer_factory,
            recorder_factory=recorder_factory,
            on_state_change=self._on_state_change,
        )
        self.dispatcher = RecognitionDispatcher(
            state=self.state,
            catalog=catalog,
            manager=self.manager,
            registry=self.registry,
            sequencer=self.sequencer,
            on_report=self._on_report,
        )
        self.manager.set_phrase_handler(self.dispatcher.on_phrase_recognized)

    # ------------------------------------------------------------------
    # Callbacks (called from the dispatcher worker)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: ProfileState, to_state: ProfileState) -> None:
        logger.debug("Profile manager %s -> %s", from_state.value, to_state.value)

    def _on_report(self, macro: str, report: ExecutionReport) -> None:
        for step in report.failed_steps:
            logger.debug(
                "Macro '%s' step %d (%#04x) failed with %d",
                macro,
                step.index,
                step.keystroke.code,
                step.error_code,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self, profile_id: str) -> int:
        if self.manager.activate(profile_id) is None:
            self.quit()
            return 1
        self.dispatcher.start()
        try:
            while self.state.running:
                self.state.stopped.wait(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.quit()
        return 0

    def quit(self) -> None:
        self.state.request_stop()
        self.dispatcher.stop()
        self.manager.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voiceattack",
        description="Trigger keyboard and mouse macros with voice commands.",
    )
    parser.add_argument("--config", type=Path, help="path to config.json")
    parser.add_argument("--profiles", type=Path, help="JSON file with profile definitions")
    parser.add_argument("--profile", help="profile to start with")
    parser.add_argument("--model", help="path to a vosk model directory")
    parser.add_argument("--hold-delay", type=float, help="seconds each key is held down")
    parser.add_argument("--injector", choices=["win32", "pynput"], help="input injection backend")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--save", action="store_true", help="store --profile/--model/--hold-delay in the config"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_store = JsonConfigStore(path=args.config)

    try:
        set_log_level(args.log_level or config_store.get_log_level())
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    if args.hold_delay is not None and args.hold_delay < 0:
        logger.error("--hold-delay must be >= 0")
        return 2
    if args.save:
        if args.profile:
            config_store.set_default_profile(args.profile)
        if args.model:
            config_store.set_model_path(args.model)
        if args.hold_delay is not None:
            config_store.set_hold_delay_s(args.hold_delay)

    profiles_path = args.profiles or (
        Path(config_store.get_profiles_path()) if config_store.get_profiles_path() else None
    )
    try:
        catalog = load_profiles(profiles_path) if profiles_path else default_catalog()
    except ProfileError as exc:
        logger.error("Invalid profiles: %s", exc)
        return 2

    try:
        injector = create_injector(args.injector or config_store.get_injector_backend())
    except (RuntimeError, ValueError, OSError) as exc:
        logger.error("Input injection unavailable: %s", exc)
        return 2

    hold_delay_s = (
        args.hold_delay if args.hold_delay is not None else config_store.get_hold_delay_s()
    )
    app = App(
        catalog=catalog,
        injector=injector,
        recognizer_factory=vosk_recognizer_factory(args.model or config_store.get_model_path()),
        recorder_factory=SoundDeviceRecorder,
        hold_delay_s=hold_delay_s,
    )
    return app.run(args.profile or config_store.get_default_profile())


if __name__ == "__main__":
    raise SystemExit(main())
