"""Reading FLV tags and their audio/video headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

TAG_AUDIO = 8
TAG_VIDEO = 9
TAG_SCRIPTDATA = 18

TAG_HEADER_LENGTH = 11

SOUND_AAC = 10
AAC_SEQHDR = 0
AAC_RAW = 1

AVC_SEQHDR = 0
AVC_NALU = 1

FRAME_KEY = 1


class TagError(ValueError):
    """Raised for malformed FLV tags."""


@dataclass
class Tag:
    """One FLV tag with its decoded audio or video header fields."""

    type: int
    timestamp: int = 0
    data: bytes = b""
    sound_format: int = 0
    sound_rate: int = 0
    sound_size: int = 0
    sound_type: int = 0
    aac_packet_type: int = 0
    frame_type: int = 0
    codec_id: int = 0
    avc_packet_type: int = 0
    composition_time: int = 0


def _read_exact(r: BinaryIO, n: int) -> bytes:
    data = r.read(n)
    if len(data) != n:
        raise EOFError(f"expected {n} bytes, got {len(data)}")
    return data


def _signed(value: int, bits: int) -> int:
    return value - (1 << bits) if value & (1 << (bits - 1)) else value


def read_tag(r: BinaryIO) -> Tag:
    """Read one tag and the previous-tag-size field that follows it."""
    header = _read_exact(r, TAG_HEADER_LENGTH)
    tag_type = header[0]
    if tag_type not in (TAG_AUDIO, TAG_VIDEO, TAG_SCRIPTDATA):
        raise TagError(f"tag type {tag_type} invalid")

    size = int.from_bytes(header[1:4], "big")
    ts = int.from_bytes(header[4:7], "big") | (header[7] << 24)

    tag = Tag(type=tag_type, timestamp=_signed(ts, 32))
    data = _read_exact(r, size)
    n = parse_header(tag, data)
    tag.data = data[n:]

    _read_exact(r, 4)
    return tag


def parse_header(tag: Tag, b: bytes) -> int:
    """Fill the tag's audio or video header fields; return the header length."""
    if tag.type == TAG_AUDIO:
        return _parse_audio(tag, b)
    if tag.type == TAG_VIDEO:
        return _parse_video(tag, b)
    return 0


def _parse_audio(tag: Tag, b: bytes) -> int:
    if len(b) < 1:
        raise TagError("audiodata: parse invalid")
    flags = b[0]
    tag.sound_format = flags >> 4
    tag.sound_rate = (flags >> 2) & 0x3
    tag.sound_size = (flags >> 1) & 0x1
    tag.sound_type = flags & 0x1
    if tag.sound_format != SOUND_AAC:
        return 1
    if len(b) < 2:
        raise TagError("audiodata: parse invalid")
    tag.aac_packet_type = b[1]
    return 2


def _parse_video(tag: Tag, b: bytes) -> int:
    if len(b) < 1:
        raise TagError("videodata: parse invalid")
    flags = b[0]
    tag.frame_type = flags >> 4
    tag.codec_id = flags & 0xF
    if len(b) < 5:
        raise TagError("videodata: parse invalid")
    tag.avc_packet_type = b[1]
    tag.composition_time = _signed(int.from_bytes(b[2:5], "big"), 24)
    return 5