"""Helpers for H.265 access units in AVC (length-prefixed) form."""

from __future__ import annotations

import base64
import binascii
from typing import List, Optional, Tuple

NALU_TYPE_PFRAME = 1
NALU_TYPE_IFRAME = 19
NALU_TYPE_IFRAME2 = 20
NALU_TYPE_IFRAME3 = 21
NALU_TYPE_VPS = 32
NALU_TYPE_SPS = 33
NALU_TYPE_PPS = 34
NALU_TYPE_PREFIX_SEI = 39
NALU_TYPE_SUFFIX_SEI = 40
NALU_TYPE_FU = 49

KEYFRAME_TYPES = frozenset({NALU_TYPE_IFRAME, NALU_TYPE_IFRAME2, NALU_TYPE_IFRAME3})


def nalu_type(b: bytes) -> int:
    """Type of the NAL unit that follows a 4-byte length (or start code) prefix."""
    return (b[4] >> 1) & 0x3F


def is_keyframe(b: bytes) -> bool:
    """True if the access unit holds an IRAP frame before any P-frame."""
    pos = 0
    while True:
        kind = nalu_type(b[pos:])
        if kind == NALU_TYPE_PFRAME:
            return False
        if kind in KEYFRAME_TYPES:
            return True
        size = int.from_bytes(b[pos:pos + 4], "big") + 4
        if size < len(b) - pos:
            pos += size
        else:
            return False


def types(data: bytes) -> List[int]:
    """List the NAL unit types of an access unit, in order."""
    result = []
    pos = 0
    while True:
        result.append(nalu_type(data[pos:]))
        size = 4 + int.from_bytes(data[pos:pos + 4], "big")
        if size < len(data) - pos:
            pos += size
        else:
            return result


def _between(s: str, start: str, end: str) -> str:
    i = s.find(start)
    if i < 0:
        return ""
    s = s[i + len(start):]
    j = s.find(end)
    return s[:j] if j >= 0 else s


def _decode(s: str) -> Optional[bytes]:
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError):
        return None


def get_parameter_set(
    fmtp: str,
) -> Tuple[Optional[bytes], Optional[bytes], Optional[bytes]]:
    """Extract VPS, SPS and PPS from an SDP fmtp line."""
    if not fmtp:
        return None, None, None
    vps = _decode(_between(fmtp, "sprop-vps=", ";"))
    sps = _decode(_between(fmtp, "sprop-sps=", ";"))
    pps = _decode(_between(fmtp, "sprop-pps=", ";"))
    return vps, sps, pps