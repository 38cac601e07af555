from __future__ import annotations

import json
from pathlib import Path

import pytest

from errors import ProfileError
from injector import build_win32_input
from models import Device
from profiles import (
    ActionKind,
    PhraseAction,
    catalog_from_dict,
    default_catalog,
    load_profiles,
    normalize_phrase,
    parse_code,
)


def test_default_catalog_matches_builtin_profiles() -> None:
    catalog = default_catalog()

    assert catalog.ids() == ["Default", "SC"]
    default = catalog.get("Default")
    assert default is not None
    assert default.grammar == ("star citizen", "hook", "stop")
    assert default.action_for("Star Citizen") == PhraseAction.switch_profile("SC")
    assert default.action_for("HOOK") == PhraseAction.run_macro("test")
    assert default.action_for("stop") == PhraseAction.stop()

    sc = catalog.get("SC")
    assert sc is not None
    assert sc.action_for("démare le vaisseau") == PhraseAction.run_macro("demarage")
    assert sc.macros["demarage"][0].code == 0x13


def test_normalize_phrase_collapses_case_and_spaces() -> None:
    assert normalize_phrase("  Star   Citizen ") == "star citizen"


def test_parse_code_accepts_ints_and_strings() -> None:
    assert parse_code(17) == 0x11
    assert parse_code("0x11") == 0x11
    assert parse_code("17") == 17
    with pytest.raises(ValueError):
        parse_code("zz")
    with pytest.raises(ValueError):
        parse_code(True)
    with pytest.raises(ValueError):
        parse_code(0x10000)


def test_load_profiles_from_file(tmp_path: Path) -> None:
    path = tmp_path / "profiles.json"
    path.write_text(
        json.dumps(
            {
                "profiles": [
                    {
                        "id": "Editor",
                        "phrases": {"Save File": {"run_macro": "save"}},
                        "macros": {
                            "save": [0x1D, {"code": "0x1F", "device": "keyboard"}],
                            "click": [{"code": 1, "device": "mouse"}],
                        },
                    }
                ]
            }
        ),
        encoding="utf-8",
    )

    catalog = load_profiles(path)

    editor = catalog.get("Editor")
    assert editor is not None
    assert editor.grammar == ("save file",)
    assert [s.code for s in editor.macros["save"]] == [0x1D, 0x1F]
    assert editor.macros["click"][0].device == Device.MOUSE


def test_switch_to_unknown_profile_is_rejected() -> None:
    with pytest.raises(ProfileError, match="unknown profile"):
        catalog_from_dict(
            {"profiles": [{"id": "A", "phrases": {"go": {"switch_profile": "B"}}}]}
        )


def test_duplicate_profile_ids_are_rejected() -> None:
    with pytest.raises(ProfileError, match="duplicate"):
        catalog_from_dict({"profiles": [{"id": "A"}, {"id": "A"}]})


def test_bad_action_and_codes_are_rejected() -> None:
    with pytest.raises(ProfileError):
        catalog_from_dict({"profiles": [{"id": "A", "phrases": {"x": {"jump": "y"}}}]})
    with pytest.raises(ProfileError):
        catalog_from_dict({"profiles": [{"id": "A", "phrases": {"x": {"run_macro": ""}}}]})
    with pytest.raises(ProfileError):
        catalog_from_dict({"profiles": [{"id": "A", "macros": {"m": [{"code": "nope"}]}}]})
    with pytest.raises(ProfileError):
        catalog_from_dict({"profiles": [{"id": "A", "macros": {"m": [{"code": 1, "device": "pen"}]}}]})
    with pytest.raises(ProfileError):
        catalog_from_dict({"profiles": []})


def test_invalid_json_file_raises_profile_error(tmp_path: Path) -> None:
    path = tmp_path / "profiles.json"
    path.write_text("{invalid", encoding="utf-8")

    with pytest.raises(ProfileError):
        load_profiles(path)


def test_stop_action_has_no_target() -> None:
    catalog = catalog_from_dict({"profiles": [{"id": "A", "phrases": {"halt": {"stop": True}}}]})
    profile = catalog.get("A")
    assert profile is not None
    action = profile.action_for("halt")
    assert action is not None
    assert action.kind == ActionKind.STOP


def test_hardware_params_from_json_reach_send_input() -> None:
    catalog = catalog_from_dict(
        json.loads(
            '{"profiles": [{"id": "A", "macros": {"hw": '
            '[{"device": "hardware", "code": "0x100", "extra": [1, 2]}]}}]}'
        )
    )

    profile = catalog.get("A")
    assert profile is not None
    stroke = profile.macros["hw"][0]
    assert stroke.press.extra == (1, 2)
    payload = build_win32_input(stroke.press)
    assert payload is not None
    assert payload.u.hi.uMsg == 0x100
    assert (payload.u.hi.wParamL, payload.u.hi.wParamH) == (1, 2)
