"""Profile definitions: phrase tables and macro tables per target application.

Profiles are plain data. They are loaded from a mapping shaped like::

    {
        "profiles": [
            {
                "id": "Default",
                "phrases": {
                    "star citizen": {"switch_profile": "SC"},
                    "hook": {"run_macro": "test"},
                    "stop": {"stop": true}
                },
                "macros": {"test": [{"code": "0x11"}]}
            }
        ]
    }

A keystroke may also be written as a bare code (``17`` or ``"0x11"``);
``device`` defaults to ``"keyboard"``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping

from errors import ProfileError
from models import Device, KeyStroke


class ActionKind(str, Enum):
    SWITCH_PROFILE = "switch_profile"
    RUN_MACRO = "run_macro"
    STOP = "stop"


@dataclass(frozen=True)
class PhraseAction:
    kind: ActionKind
    target: str = ""

    @classmethod
    def switch_profile(cls, profile_id: str) -> "PhraseAction":
        return cls(ActionKind.SWITCH_PROFILE, profile_id)

    @classmethod
    def run_macro(cls, name: str) -> "PhraseAction":
        return cls(ActionKind.RUN_MACRO, name)

    @classmethod
    def stop(cls) -> "PhraseAction":
        return cls(ActionKind.STOP)


@dataclass(frozen=True)
class Profile:
    id: str
    phrases: Mapping[str, PhraseAction] = field(default_factory=dict)
    macros: Mapping[str, tuple[KeyStroke, ...]] = field(default_factory=dict)

    @property
    def grammar(self) -> tuple[str, ...]:
        return tuple(self.phrases)

    def action_for(self, phrase: str) -> PhraseAction | None:
        return self.phrases.get(normalize_phrase(phrase))


class ProfileCatalog:
    def __init__(self, profiles: list[Profile]) -> None:
        self._profiles: dict[str, Profile] = {}
        for profile in profiles:
            if profile.id in self._profiles:
                raise ProfileError(f"duplicate profile id: {profile.id}")
            self._profiles[profile.id] = profile
        self._check_switch_targets()

    def get(self, profile_id: str) -> Profile | None:
        return self._profiles.get(profile_id)

    def ids(self) -> list[str]:
        return list(self._profiles)

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    def _check_switch_targets(self) -> None:
        for profile in self._profiles.values():
            for phrase, action in profile.phrases.items():
                if action.kind == ActionKind.SWITCH_PROFILE and action.target not in self._profiles:
                    raise ProfileError(
                        f"profile {profile.id!r}: phrase {phrase!r} switches to unknown "
                        f"profile {action.target!r}"
                    )


def normalize_phrase(phrase: str) -> str:
    return " ".join(phrase.split()).lower()


def parse_code(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"invalid key code: {value!r}")
    if isinstance(value, int):
        code = value
    elif isinstance(value, str):
        code = int(value.strip(), 0)
    else:
        raise ValueError(f"invalid key code: {value!r}")
    if not 0 <= code <= 0xFFFF:
        raise ValueError(f"key code out of range: {value!r}")
    return code


def _parse_keystroke(profile_id: str, macro: str, raw: Any) -> KeyStroke:
    where = f"profile {profile_id!r}, macro {macro!r}"
    entry = raw if isinstance(raw, dict) else {"code": raw}
    try:
        code = parse_code(entry.get("code"))
        device = Device(str(entry.get("device", Device.KEYBOARD.value)).lower())
    except ValueError as exc:
        raise ProfileError(f"{where}: {exc}") from exc
    extra = entry.get("extra")
    if isinstance(extra, list):
        extra = tuple(extra)
    return KeyStroke.of(code, device=device, extra=extra)


def _parse_action(profile_id: str, phrase: str, raw: Any) -> PhraseAction:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ProfileError(
            f"profile {profile_id!r}: phrase {phrase!r} needs exactly one of "
            f"{', '.join(kind.value for kind in ActionKind)}"
        )
    (key, value), = raw.items()
    try:
        kind = ActionKind(key)
    except ValueError as exc:
        raise ProfileError(f"profile {profile_id!r}: unknown action {key!r}") from exc
    if kind == ActionKind.STOP:
        return PhraseAction.stop()
    if not isinstance(value, str) or not value:
        raise ProfileError(f"profile {profile_id!r}: phrase {phrase!r} has an empty target")
    return PhraseAction(kind, value)


def profile_from_dict(data: Mapping[str, Any]) -> Profile:
    profile_id = str(data.get("id", "")).strip()
    if not profile_id:
        raise ProfileError("profile without an id")

    macros: dict[str, tuple[KeyStroke, ...]] = {}
    for name, steps in dict(data.get("macros") or {}).items():
        if not isinstance(steps, list):
            raise ProfileError(f"profile {profile_id!r}: macro {name!r} must be a list")
        macros[name] = tuple(_parse_keystroke(profile_id, name, step) for step in steps)

    phrases: dict[str, PhraseAction] = {}
    for phrase, raw_action in dict(data.get("phrases") or {}).items():
        key = normalize_phrase(phrase)
        if not key:
            raise ProfileError(f"profile {profile_id!r}: empty phrase")
        phrases[key] = _parse_action(profile_id, phrase, raw_action)

    return Profile(id=profile_id, phrases=phrases, macros=macros)


def catalog_from_dict(data: Mapping[str, Any]) -> ProfileCatalog:
    raw_profiles = data.get("profiles")
    if not isinstance(raw_profiles, list) or not raw_profiles:
        raise ProfileError("'profiles' must be a non-empty list")
    return ProfileCatalog([profile_from_dict(item) for item in raw_profiles])


def load_profiles(path: Path) -> ProfileCatalog:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ProfileError(f"cannot read profiles from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProfileError(f"{path}: top level must be an object")
    return catalog_from_dict(data)


# Scancodes are AZERTY set 1: 0x11 = Z, 0x13 = R, 0x31 = N.
DEFAULT_PROFILES: dict[str, Any] = {
    "profiles": [
        {
            "id": "Default",
            "phrases": {
                "Star Citizen": {"switch_profile": "SC"},
                "Hook": {"run_macro": "test"},
                "stop": {"stop": True},
            },
            "macros": {"test": [{"code": "0x11"}]},
        },
        {
            "id": "SC",
            "phrases": {
                "démare le vaisseau": {"run_macro": "demarage"},
                "pose toi": {"run_macro": "atterrissage"},
                "accueil": {"switch_profile": "Default"},
                "stop": {"stop": True},
            },
            "macros": {
                "demarage": [{"code": "0x13"}],
                "atterrissage": [{"code": "0x31"}],
            },
        },
    ]
}


def default_catalog() -> ProfileCatalog:
    return catalog_from_dict(DEFAULT_PROFILES)
