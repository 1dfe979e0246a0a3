import pytest

from mediakit.h265.payloader import (
    AGGREGATION_PACKET_TYPE,
    FRAGMENTATION_UNIT_TYPE,
    FragmentationUnitHeader,
    NALUHeader,
    Payloader,
)


def unit(kind, size, tid=1):
    return bytes([kind << 1, tid]) + bytes((i * 7) & 0xFF for i in range(size - 2))


def avc(*units):
    return b"".join(len(u).to_bytes(4, "big") + u for u in units)


def test_nalu_header_fields():
    header = NALUHeader.from_bytes(0x40, 0x01)
    assert header.type == 32
    assert header.layer_id == 0
    assert header.tid == 1
    assert header.f is False
    assert header.is_type_vcl_unit is False


def test_nalu_header_packet_kinds():
    assert NALUHeader.from_bytes(AGGREGATION_PACKET_TYPE << 1, 1).is_aggregation_packet
    assert NALUHeader.from_bytes(FRAGMENTATION_UNIT_TYPE << 1, 1).is_fragmentation_unit
    assert NALUHeader.from_bytes(50 << 1, 1).is_paci_packet
    assert NALUHeader.from_bytes(19 << 1, 1).is_type_vcl_unit


def test_fu_header_fields():
    header = FragmentationUnitHeader(0x80 | 19)
    assert header.s is True
    assert header.e is False
    assert header.fu_type == 19
    assert FragmentationUnitHeader(0x40 | 1).e is True


def test_empty_payload():
    assert Payloader().payload(1200, b"") == []


def test_single_nalu_passes_through():
    nalu = unit(1, 50)
    assert Payloader().payload(1200, avc(nalu)) == [nalu]


def test_aggregation_packet_holds_all_units():
    a, b = unit(32, 10), unit(33, 12)
    out = Payloader().payload(1200, avc(a, b))
    assert len(out) == 1
    packet = out[0]
    assert NALUHeader.from_bytes(packet[0], packet[1]).type == AGGREGATION_PACKET_TYPE
    pos = 2
    found = []
    while pos < len(packet):
        size = int.from_bytes(packet[pos:pos + 2], "big")
        found.append(packet[pos + 2:pos + 2 + size])
        pos += 2 + size
    assert found == [a, b]


def test_skip_aggregation_emits_each_unit():
    a, b = unit(32, 10), unit(33, 12)
    out = Payloader(skip_aggregation=True).payload(1200, avc(a, b))
    assert out == [a, b]


def test_fragmentation_reassembles():
    nalu = unit(19, 500)
    mtu = 100
    out = Payloader().payload(mtu, avc(nalu))
    assert len(out) > 1
    assert all(len(p) <= mtu for p in out)
    for p in out:
        assert NALUHeader.from_bytes(p[0], p[1]).type == FRAGMENTATION_UNIT_TYPE
    assert FragmentationUnitHeader(out[0][2]).s
    assert FragmentationUnitHeader(out[-1][2]).e
    assert all(FragmentationUnitHeader(p[2]).fu_type == 19 for p in out)
    assert b"".join(p[3:] for p in out) == nalu[2:]


def test_donl_counter_on_single_units():
    a, b = unit(1, 20), unit(1, 20)
    out = Payloader(add_donl=True, skip_aggregation=True).payload(1200, avc(a, b))
    assert out[0][2:4] == b"\x00\x00"
    assert out[1][2:4] == b"\x00\x01"
    assert out[0][:2] + out[0][4:] == a


def test_mtu_too_small_raises():
    with pytest.raises(ValueError):
        Payloader().payload(2, avc(unit(19, 20)))