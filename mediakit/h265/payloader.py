"""H.265 RTP payloader (RFC 7798): single NAL units, aggregation and fragmentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

NALU_HEADER_SIZE = 2
AGGREGATION_PACKET_TYPE = 48
FRAGMENTATION_UNIT_TYPE = 49
PACI_PACKET_TYPE = 50
FU_HEADER_SIZE = 1


@dataclass(frozen=True)
class NALUHeader:
    """Two-byte H.265 NAL unit header: F | Type(6) | LayerID(6) | TID(3)."""

    value: int

    @classmethod
    def from_bytes(cls, high: int, low: int) -> "NALUHeader":
        return cls(((high & 0xFF) << 8) | (low & 0xFF))

    @property
    def f(self) -> bool:
        return (self.value >> 15) != 0

    @property
    def type(self) -> int:
        return (self.value & 0x7E00) >> 9

    @property
    def is_type_vcl_unit(self) -> bool:
        return (self.type & 0b00100000) == 0

    @property
    def layer_id(self) -> int:
        return (self.value & 0x01F8) >> 3

    @property
    def tid(self) -> int:
        return self.value & 0x07

    @property
    def is_aggregation_packet(self) -> bool:
        return self.type == AGGREGATION_PACKET_TYPE

    @property
    def is_fragmentation_unit(self) -> bool:
        return self.type == FRAGMENTATION_UNIT_TYPE

    @property
    def is_paci_packet(self) -> bool:
        return self.type == PACI_PACKET_TYPE


@dataclass(frozen=True)
class FragmentationUnitHeader:
    """One-byte FU header: S | E | FuType(6)."""

    value: int

    @property
    def s(self) -> bool:
        return (self.value & 0x80) != 0

    @property
    def e(self) -> bool:
        return (self.value & 0x40) != 0

    @property
    def fu_type(self) -> int:
        return self.value & 0x3F


def _iter_avc(data: bytes) -> Iterator[bytes]:
    pos = 0
    while pos + 4 <= len(data):
        size = int.from_bytes(data[pos:pos + 4], "big")
        pos += 4
        yield data[pos:pos + size]
        pos += size


@dataclass
class Payloader:
    """Splits an AVC-form H.265 access unit into RTP payloads."""

    add_donl: bool = False
    skip_aggregation: bool = False
    _donl: int = field(default=0, repr=False)

    def _next_donl(self) -> bytes:
        value = self._donl.to_bytes(2, "big")
        self._donl = (self._donl + 1) & 0xFFFF
        return value

    def _single(self, nalu: bytes) -> bytes:
        if not self.add_donl:
            return nalu
        return nalu[:NALU_HEADER_SIZE] + self._next_donl() + nalu[NALU_HEADER_SIZE:]

    def _aggregate(self, nalus: List[bytes], size: int) -> bytes:
        headers = [NALUHeader.from_bytes(n[0], n[1]) for n in nalus]
        layer_id = min([0xFF] + [h.layer_id for h in headers])
        tid = min([0xFF] + [h.tid for h in headers])
        header = ((AGGREGATION_PACKET_TYPE << 9) | (layer_id << 3) | tid) & 0xFFFF

        out = bytearray(header.to_bytes(2, "big"))
        for i, nalu in enumerate(nalus):
            if self.add_donl:
                if i == 0:
                    out += self._donl.to_bytes(2, "big")
                else:
                    out.append((i - 1) & 0xFF)
            out += len(nalu).to_bytes(2, "big")
            out += nalu
        # The packet size is budgeted from the per-unit margins, which
        # undercount the first DONL field; the packet is cut to that budget.
        return bytes(out[:size + 2])

    def _fragment(self, mtu: int, nalu: bytes) -> List[bytes]:
        header_size = FU_HEADER_SIZE + 2 + (2 if self.add_donl else 0)
        max_payload = mtu - header_size
        header = NALUHeader.from_bytes(nalu[0], nalu[1])
        body = nalu[NALU_HEADER_SIZE:]
        if max_payload == 0 or not body:
            return []
        if max_payload < 0:
            raise ValueError(f"mtu {mtu} too small for fragmentation units")

        b0 = ((header.value >> 8) & 0b10000001) | (FRAGMENTATION_UNIT_TYPE << 1)
        b1 = header.value & 0xFF
        out = []
        total = len(body)
        pos = 0
        while pos < total:
            chunk = body[pos:pos + max_payload]
            fu = header.type
            if pos == 0:
                fu |= 0x80
            elif pos + len(chunk) == total:
                fu |= 0x40
            packet = bytes([b0, b1, fu])
            if self.add_donl:
                packet += self._next_donl()
            out.append(packet + chunk)
            pos += len(chunk)
        return out

    def payload(self, mtu: int, payload: bytes) -> List[bytes]:
        """Return the RTP payloads for one access unit, each at most mtu bytes."""
        payloads: List[bytes] = []
        if not payload:
            return payloads

        buffered: List[bytes] = []
        buffered_size = 0

        def flush() -> None:
            nonlocal buffered, buffered_size
            if not buffered:
                return
            if len(buffered) == 1:
                payloads.append(self._single(buffered[0]))
            else:
                payloads.append(self._aggregate(buffered, buffered_size))
            buffered = []
            buffered_size = 0

        for nalu in _iter_avc(payload):
            if not nalu:
                continue
            if len(nalu) <= mtu:
                margin = len(nalu) + 2 + (1 if self.add_donl else 0)
                if buffered_size + margin > mtu:
                    flush()
                buffered.append(nalu)
                buffered_size += margin
                if self.skip_aggregation:
                    flush()
            else:
                fragments = self._fragment(mtu, nalu)
                if fragments:
                    flush()
                    payloads.extend(fragments)

        flush()
        return payloads