import io

import pytest

from mediakit.flv.tags import (
    AAC_RAW,
    AVC_NALU,
    FRAME_KEY,
    SOUND_AAC,
    TAG_AUDIO,
    TAG_SCRIPTDATA,
    TAG_VIDEO,
    Tag,
    TagError,
    parse_header,
    read_tag,
)


def _tag(tag_type, data, ts=0):
    header = (
        bytes([tag_type])
        + len(data).to_bytes(3, "big")
        + (ts & 0xFFFFFF).to_bytes(3, "big")
        + bytes([(ts >> 24) & 0xFF])
        + b"\x00\x00\x00"
    )
    return header + data + (len(header) + len(data)).to_bytes(4, "big")


def test_read_video_tag():
    flags = (FRAME_KEY << 4) | 7
    data = bytes([flags, AVC_NALU, 0, 0, 0]) + b"\xaa\xbb"
    tag = read_tag(io.BytesIO(_tag(TAG_VIDEO, data, ts=100)))
    assert tag.type == TAG_VIDEO
    assert tag.timestamp == 100
    assert tag.frame_type == FRAME_KEY
    assert tag.codec_id == 7
    assert tag.avc_packet_type == AVC_NALU
    assert tag.composition_time == 0
    assert tag.data == b"\xaa\xbb"


def test_read_aac_tag():
    flags = (SOUND_AAC << 4) | (3 << 2) | (1 << 1) | 1
    data = bytes([flags, AAC_RAW]) + b"\x21\x10"
    tag = read_tag(io.BytesIO(_tag(TAG_AUDIO, data, ts=20)))
    assert tag.sound_format == SOUND_AAC
    assert (tag.sound_rate, tag.sound_size, tag.sound_type) == (3, 1, 1)
    assert tag.aac_packet_type == AAC_RAW
    assert tag.data == b"\x21\x10"


def test_script_tag_data_untouched():
    data = b"\x02\x00\x0aonMetaData"
    tag = read_tag(io.BytesIO(_tag(TAG_SCRIPTDATA, data)))
    assert tag.data == data


def test_extended_timestamp():
    ts = 0x01000005
    tag = read_tag(io.BytesIO(_tag(TAG_SCRIPTDATA, b"x", ts=ts)))
    assert tag.timestamp == ts


def test_sequential_tags():
    stream = io.BytesIO(_tag(TAG_SCRIPTDATA, b"a") + _tag(TAG_SCRIPTDATA, b"b", ts=40))
    first = read_tag(stream)
    second = read_tag(stream)
    assert (first.data, second.data) == (b"a", b"b")
    assert second.timestamp == 40


def test_negative_composition_time():
    tag = Tag(type=TAG_VIDEO)
    n = parse_header(tag, bytes([0x27, AVC_NALU, 0xFF, 0xFF, 0xFF]))
    assert n == 5
    assert tag.composition_time == -1


def test_non_aac_audio_header_is_one_byte():
    tag = Tag(type=TAG_AUDIO)
    assert parse_header(tag, bytes([0x2F, 0x00])) == 1
    assert tag.sound_format == 2


def test_invalid_tag_type():
    with pytest.raises(TagError):
        read_tag(io.BytesIO(_tag(5, b"xyz")))


def test_short_video_header():
    with pytest.raises(TagError):
        read_tag(io.BytesIO(_tag(TAG_VIDEO, b"\x17\x01")))


def test_short_aac_header():
    with pytest.raises(TagError):
        parse_header(Tag(type=TAG_AUDIO), bytes([SOUND_AAC << 4]))


def test_truncated_stream():
    data = _tag(TAG_SCRIPTDATA, b"abcdef")
    with pytest.raises(EOFError):
        read_tag(io.BytesIO(data[:-6]))