"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens.
Handles ESC-sequence timing, CSI/SS3 navigation keys, UTF-8 text and the
out-of-band color-scheme notifications terminals send under mode 2031.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
MAX_SEQUENCE_BYTES = 64
_PENDING_BYTES: list[bytes] = []

COLOR_SCHEME_DARK_KEY = "COLOR_SCHEME_DARK"
COLOR_SCHEME_LIGHT_KEY = "COLOR_SCHEME_LIGHT"
UNKNOWN_KEY = "UNKNOWN"
ALT_PREFIX = "ALT_"

_CONTROL_KEYS: dict[bytes, str] = {
    b"\x03": "CTRL_C",
    b"\x04": "CTRL_D",
    b"\x15": "CTRL_U",
    b"\x1a": "CTRL_Z",
    b"\t": "TAB",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b"\r": "ENTER",
    b"\n": "ENTER",
}

_CSI_FINAL_KEYS: dict[str, str] = {
    "A": "UP",
    "B": "DOWN",
    "C": "RIGHT",
    "D": "LEFT",
    "H": "HOME",
    "F": "END",
}

_CSI_TILDE_KEYS: dict[str, str] = {
    "1": "HOME",
    "7": "HOME",
    "4": "END",
    "8": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
}

_SS3_KEYS: dict[bytes, str] = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    if _PENDING_BYTES:
        return _PENDING_BYTES.pop(0)
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_sequence_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_text(fd: int, first: bytes) -> str:
    """Decode one UTF-8 character, reading continuation bytes as needed."""
    raw = bytearray(first)
    for _ in range(_utf8_sequence_length(first[0]) - 1):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        raw.extend(nxt)
    return raw.decode("utf-8", errors="replace")


def decode_csi(params: str, final: str) -> str:
    """Map a CSI parameter string and final byte to a key token."""
    if final == "n" and params.startswith("?997;"):
        value = params[len("?997;"):]
        if value == "1":
            return COLOR_SCHEME_DARK_KEY
        if value == "2":
            return COLOR_SCHEME_LIGHT_KEY
        return UNKNOWN_KEY
    if final == "~":
        first = params.split(";", 1)[0]
        return _CSI_TILDE_KEYS.get(first, UNKNOWN_KEY)
    return _CSI_FINAL_KEYS.get(final, UNKNOWN_KEY)


def _read_csi(fd: int) -> str:
    params: list[str] = []
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return "ESC"
        code = part[0]
        if 0x40 <= code <= 0x7E:
            return decode_csi("".join(params), chr(code))
        params.append(part.decode("ascii", errors="replace"))
        if len(params) > MAX_SEQUENCE_BYTES:
            return UNKNOWN_KEY


def _discard_osc(fd: int) -> str:
    """Swallow an OSC string (late detection replies) up to BEL or ST."""
    prev = b""
    for _ in range(MAX_SEQUENCE_BYTES):
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None or part == b"\x07":
            break
        if prev == b"\x1b" and part == b"\\":
            break
        prev = part
    return UNKNOWN_KEY


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token from ``fd``.

    Returns ``""`` when ``timeout_ms`` elapses without input. Printable
    input is returned as the character itself; everything else is an
    upper-case token such as ``"PAGE_DOWN"`` or ``"CTRL_Z"``.
    """
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""

        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch in _CONTROL_KEYS:
        return _CONTROL_KEYS[ch]

    if ch != b"\x1b":
        if ch[0] < 0x20:
            return UNKNOWN_KEY
        return _decode_text(fd, ch)

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"[":
        return _read_csi(fd)
    if seq == b"]":
        return _discard_osc(fd)
    if seq == b"O":
        seq2 = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if seq2 is None:
            return "ESC"
        return _SS3_KEYS.get(seq2, UNKNOWN_KEY)
    if seq == b"\x1b":
        _PENDING_BYTES.append(seq)
        return "ESC"
    # meta-prefixed key: one token, never a bare ESC plus the key
    if seq[0] >= 0x80:
        return ALT_PREFIX + _decode_text(fd, seq)
    if seq[0] >= 0x20 and seq != b"\x7f":
        return ALT_PREFIX + seq.decode("ascii")
    return UNKNOWN_KEY
