from dataclasses import replace

from mediakit.packet import VERSION_AVC, Packet, Sequencer


def test_sequencer_increments_by_one():
    seq = Sequencer(start=100)
    assert seq.next_sequence_number() == 101
    assert seq.next_sequence_number() == 102


def test_sequencer_wraps_around():
    seq = Sequencer(start=0xFFFF)
    assert seq.next_sequence_number() == 0
    assert seq.next_sequence_number() == 1


def test_random_sequencer_is_consecutive_and_16_bit():
    seq = Sequencer()
    first = seq.next_sequence_number()
    second = seq.next_sequence_number()
    assert 0 <= first <= 0xFFFF
    assert second == (first + 1) & 0xFFFF


def test_packet_defaults_and_clone():
    packet = Packet(timestamp=90000, payload=b"\x01\x02")
    assert packet.version == VERSION_AVC
    assert packet.marker is False
    clone = replace(packet, marker=True)
    assert clone.timestamp == packet.timestamp
    assert clone.payload == packet.payload
    assert packet.marker is False