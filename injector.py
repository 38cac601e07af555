"""Input injection backends.

Both backends inject exactly one event per call and report the number of
accepted events, so a failure can be pinned to the event that caused it.
``Win32SendInputInjector`` talks to ``user32.SendInput`` directly and sends
keyboard codes as hardware scancodes, which is what games usually read.
``PynputInjector`` works everywhere pynput does and treats keyboard codes
as virtual-key codes.
"""

from __future__ import annotations

import ctypes
import sys
from typing import Any, Optional

from errors import ERROR_NOT_SUPPORTED, UNKNOWN_ERROR_CODE
from interfaces import InputInjector
from models import Device, InputEvent, KeyAction

try:
    from pynput import keyboard as pynput_keyboard
    from pynput import mouse as pynput_mouse
except Exception:  # pragma: no cover
    pynput_keyboard = None  # type: ignore
    pynput_mouse = None  # type: ignore


INPUT_MOUSE = 0
INPUT_KEYBOARD = 1
INPUT_HARDWARE = 2

KEYEVENTF_EXTENDEDKEY = 0x0001
KEYEVENTF_KEYUP = 0x0002
KEYEVENTF_SCANCODE = 0x0008

MOUSEEVENTF_LEFTDOWN = 0x0002
MOUSEEVENTF_LEFTUP = 0x0004
MOUSEEVENTF_RIGHTDOWN = 0x0008
MOUSEEVENTF_RIGHTUP = 0x0010
MOUSEEVENTF_MIDDLEDOWN = 0x0020
MOUSEEVENTF_MIDDLEUP = 0x0040
MOUSEEVENTF_XDOWN = 0x0080
MOUSEEVENTF_XUP = 0x0100

# Mouse codes: 1 left, 2 right, 3 middle, 4/5 side buttons.
MOUSE_BUTTON_FLAGS = {
    1: (MOUSEEVENTF_LEFTDOWN, MOUSEEVENTF_LEFTUP, 0),
    2: (MOUSEEVENTF_RIGHTDOWN, MOUSEEVENTF_RIGHTUP, 0),
    3: (MOUSEEVENTF_MIDDLEDOWN, MOUSEEVENTF_MIDDLEUP, 0),
    4: (MOUSEEVENTF_XDOWN, MOUSEEVENTF_XUP, 1),
    5: (MOUSEEVENTF_XDOWN, MOUSEEVENTF_XUP, 2),
}

ULONG_PTR = ctypes.c_size_t


class KEYBDINPUT(ctypes.Structure):
    _fields_ = [
        ("wVk", ctypes.c_uint16),
        ("wScan", ctypes.c_uint16),
        ("dwFlags", ctypes.c_uint32),
        ("time", ctypes.c_uint32),
        ("dwExtraInfo", ULONG_PTR),
    ]


class MOUSEINPUT(ctypes.Structure):
    _fields_ = [
        ("dx", ctypes.c_int32),
        ("dy", ctypes.c_int32),
        ("mouseData", ctypes.c_uint32),
        ("dwFlags", ctypes.c_uint32),
        ("time", ctypes.c_uint32),
        ("dwExtraInfo", ULONG_PTR),
    ]


class HARDWAREINPUT(ctypes.Structure):
    _fields_ = [
        ("uMsg", ctypes.c_uint32),
        ("wParamL", ctypes.c_uint16),
        ("wParamH", ctypes.c_uint16),
    ]


class _INPUTUNION(ctypes.Union):
    _fields_ = [("mi", MOUSEINPUT), ("ki", KEYBDINPUT), ("hi", HARDWAREINPUT)]


class INPUT(ctypes.Structure):
    _fields_ = [("type", ctypes.c_uint32), ("u", _INPUTUNION)]


def _extra_flag(extra: Any, name: str) -> bool:
    return isinstance(extra, dict) and bool(extra.get(name))


def build_win32_input(event: InputEvent, extra_info: int = 0) -> Optional[INPUT]:
    """Translate an InputEvent into a SendInput structure, or None if unmappable."""
    release = event.action == KeyAction.RELEASE
    if event.device == Device.KEYBOARD:
        flags = KEYEVENTF_SCANCODE
        if release:
            flags |= KEYEVENTF_KEYUP
        if _extra_flag(event.extra, "extended"):
            flags |= KEYEVENTF_EXTENDEDKEY
        ki = KEYBDINPUT(wVk=0, wScan=event.code, dwFlags=flags, time=0, dwExtraInfo=extra_info)
        return INPUT(type=INPUT_KEYBOARD, u=_INPUTUNION(ki=ki))
    if event.device == Device.MOUSE:
        mapping = MOUSE_BUTTON_FLAGS.get(event.code)
        if mapping is None:
            return None
        down, up, mouse_data = mapping
        mi = MOUSEINPUT(
            dx=0,
            dy=0,
            mouseData=mouse_data,
            dwFlags=up if release else down,
            time=0,
            dwExtraInfo=extra_info,
        )
        return INPUT(type=INPUT_MOUSE, u=_INPUTUNION(mi=mi))
    low, high = 0, 0
    if isinstance(event.extra, (tuple, list)) and len(event.extra) == 2:
        low, high = event.extra
    hi = HARDWAREINPUT(uMsg=event.code, wParamL=low, wParamH=high)
    return INPUT(type=INPUT_HARDWARE, u=_INPUTUNION(hi=hi))


class Win32SendInputInjector:
    def __init__(self) -> None:
        if not sys.platform.startswith("win"):
            raise RuntimeError("SendInput is only available on Windows")
        self._user32 = ctypes.WinDLL("user32", use_last_error=True)  # type: ignore[attr-defined]
        self._last_error = 0

    def send_input(self, event: InputEvent) -> int:
        extra_info = int(self._user32.GetMessageExtraInfo() or 0)
        payload = build_win32_input(event, extra_info)
        if payload is None:
            self._last_error = ERROR_NOT_SUPPORTED
            return 0
        accepted = int(self._user32.SendInput(1, ctypes.byref(payload), ctypes.sizeof(INPUT)))
        if accepted == 0:
            self._last_error = ctypes.get_last_error()  # type: ignore[attr-defined]
        return accepted

    def last_error(self) -> int:
        return self._last_error


class PynputInjector:
    def __init__(self) -> None:
        self._keyboard: Any = None
        self._mouse: Any = None
        self._last_error = 0

    def send_input(self, event: InputEvent) -> int:
        if pynput_keyboard is None or pynput_mouse is None:
            self._last_error = ERROR_NOT_SUPPORTED
            return 0
        try:
            if event.device == Device.KEYBOARD:
                self._send_key(event)
            elif event.device == Device.MOUSE:
                if not self._send_button(event):
                    self._last_error = ERROR_NOT_SUPPORTED
                    return 0
            else:
                self._last_error = ERROR_NOT_SUPPORTED
                return 0
        except Exception:
            self._last_error = UNKNOWN_ERROR_CODE
            return 0
        return 1

    def last_error(self) -> int:
        return self._last_error

    def _send_key(self, event: InputEvent) -> None:
        if self._keyboard is None:
            self._keyboard = pynput_keyboard.Controller()
        key = pynput_keyboard.KeyCode.from_vk(event.code)
        if event.action == KeyAction.PRESS:
            self._keyboard.press(key)
        else:
            self._keyboard.release(key)

    def _send_button(self, event: InputEvent) -> bool:
        buttons = {
            1: pynput_mouse.Button.left,
            2: pynput_mouse.Button.right,
            3: pynput_mouse.Button.middle,
        }
        button = buttons.get(event.code)
        if button is None:
            return False
        if self._mouse is None:
            self._mouse = pynput_mouse.Controller()
        if event.action == KeyAction.PRESS:
            self._mouse.press(button)
        else:
            self._mouse.release(button)
        return True


def create_injector(backend: str = "") -> InputInjector:
    """Build the injector named by ``backend`` ("win32", "pynput" or "" for the platform default)."""
    name = backend.strip().lower() or ("win32" if sys.platform.startswith("win") else "pynput")
    if name == "win32":
        return Win32SendInputInjector()
    if name == "pynput":
        return PynputInjector()
    raise ValueError(f"unknown injector backend: {backend}")
