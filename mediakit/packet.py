"""RTP packet model and sequence number generation."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Callable, Optional

# Packet version used internally for access units carried in AVC form
# (NAL units prefixed with a 4-byte big-endian length) instead of RTP payloads.
VERSION_AVC = 0
VERSION_RTP = 2


@dataclass
class Packet:
    """An RTP packet: the header fields used by the pipeline plus the payload."""

    version: int = 0
    marker: bool = False
    payload_type: int = 0
    sequence_number: int = 0
    timestamp: int = 0
    ssrc: int = 0
    payload: bytes = b""


Writer = Callable[[Packet], Optional[object]]
Wrapper = Callable[[Writer], Writer]


class Sequencer:
    """Generates 16-bit RTP sequence numbers starting from a random value."""

    def __init__(self, start: Optional[int] = None) -> None:
        self._value = secrets.randbits(16) if start is None else start & 0xFFFF

    def next_sequence_number(self) -> int:
        """Advance and return the next sequence number, wrapping at 2**16."""
        self._value = (self._value + 1) & 0xFFFF
        return self._value