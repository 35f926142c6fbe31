"""Low-level terminal input decoding.

Reads raw bytes from stdin and turns them into ``KeyPress``/``MouseEvent``/
``FocusGained`` events. Handles ESC-sequence timing, modifier combos, focus
reports and SGR mouse reports (press, release, drag motion and wheel).
"""

from __future__ import annotations

import os
import select

from ..events import Event, FocusGained, KeyPress, MouseButton, MouseEvent, MouseKind

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_CONTROL_KEYS: dict[bytes, str] = {
    b"\x01": "CTRL_A",
    b"\x03": "CTRL_C",
    b"\x04": "CTRL_D",
    b"\x05": "CTRL_E",
    b"\x06": "CTRL_F",
    b"\x07": "CTRL_G",
    b"\t": "TAB",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b"\x0b": "CTRL_K",
    b"\x0c": "CTRL_L",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x0e": "CTRL_N",
    b"\x0f": "CTRL_O",
    b"\x10": "CTRL_P",
    b"\x12": "CTRL_R",
    b"\x15": "CTRL_U",
    b"\x17": "CTRL_W",
    b"\x1a": "CTRL_Z",
}

_CSI_FINAL_KEYS: dict[bytes, str] = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"Z": "SHIFT_TAB",
}

_CSI_TILDE_KEYS: dict[str, str] = {
    "1": "HOME",
    "3": "DELETE",
    "4": "END",
    "5": "PGUP",
    "6": "PGDOWN",
}

_MOUSE_BUTTONS = (MouseButton.LEFT, MouseButton.MIDDLE, MouseButton.RIGHT, MouseButton.NONE)


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _read_utf8_tail(fd: int, first: bytes) -> str:
    lead = first[0]
    if lead >= 0xF0:
        extra = 3
    elif lead >= 0xE0:
        extra = 2
    elif lead >= 0xC0:
        extra = 1
    else:
        extra = 0
    data = first
    for _ in range(extra):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data.decode("utf-8", errors="replace")


def decode_sgr_mouse(payload: str, final: str) -> MouseEvent | None:
    """Decode the body of ``ESC [ < btn ; col ; row (M|m)`` into an event.

    Terminal coordinates are 1-based; events use 0-based cells.
    """
    try:
        btn_s, col_s, row_s = payload.split(";")
        btn = int(btn_s)
        x = int(col_s) - 1
        y = int(row_s) - 1
    except ValueError:
        return None
    button = _MOUSE_BUTTONS[btn & 0b11]
    if btn & 0b0100_0000:
        if btn & 0b11 == 0:
            return MouseEvent(MouseKind.WHEEL_UP, x, y, MouseButton.NONE)
        if btn & 0b11 == 1:
            return MouseEvent(MouseKind.WHEEL_DOWN, x, y, MouseButton.NONE)
        return None
    if btn & 0b0010_0000:
        return MouseEvent(MouseKind.MOTION, x, y, button)
    if final == "m":
        return MouseEvent(MouseKind.RELEASE, x, y, button)
    return MouseEvent(MouseKind.PRESS, x, y, button)


def _read_csi(fd: int) -> Event | None:
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyPress("ESC")
    if seq in _CSI_FINAL_KEYS:
        return KeyPress(_CSI_FINAL_KEYS[seq])
    if seq == b"I":
        return FocusGained()
    if seq == b"O":
        # focus lost carries no behavior
        return None

    if seq == b"<":
        payload: list[bytes] = []
        while True:
            part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
            if part is None:
                return KeyPress("ESC")
            if part in {b"M", b"m"}:
                break
            payload.append(part)
            if len(payload) > 64:
                return KeyPress("ESC")
        event = decode_sgr_mouse(b"".join(payload).decode("ascii", errors="replace"), part.decode("ascii"))
        return event if event is not None else KeyPress("MOUSE")

    params = seq
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return KeyPress("ESC")
        if part == b"~":
            return KeyPress(_CSI_TILDE_KEYS.get(params.decode("ascii", errors="replace"), "ESC"))
        if part in _CSI_FINAL_KEYS:
            modifier = params.decode("ascii", errors="replace").rpartition(";")[2]
            name = _CSI_FINAL_KEYS[part]
            if modifier == "2":
                return KeyPress(f"SHIFT_{name}")
            if modifier in {"3", "9"}:
                return KeyPress(f"ALT_{name}")
            if modifier == "5":
                return KeyPress(f"CTRL_{name}")
            return KeyPress(name)
        params += part
        if len(params) > 16:
            return KeyPress("ESC")


def read_event(fd: int, timeout_ms: int | None = None) -> Event | None:
    """Read one input event from ``fd``; ``None`` when nothing arrived in time."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return None
        ch = os.read(fd, 1)
        if not ch:
            return None

    if ch in _CONTROL_KEYS:
        return KeyPress(_CONTROL_KEYS[ch])
    if ch != b"\x1b":
        return KeyPress(_read_utf8_tail(fd, ch))

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return KeyPress("ESC")
    if seq == b"[":
        return _read_csi(fd)
    if seq in {b"b", b"B"}:
        return KeyPress("ALT_LEFT")
    if seq in {b"f", b"F"}:
        return KeyPress("ALT_RIGHT")
    _PENDING_BYTES.append(seq)
    return KeyPress("ESC")
