"""RTP/JPEG (RFC 2435) depacketizing and packetizing wrappers."""

from __future__ import annotations

import io
from dataclasses import replace

from PIL import Image

from mediakit.mjpeg.rfc2435 import make_headers, make_tables
from mediakit.packet import VERSION_RTP, Packet, Sequencer, Wrapper, Writer

PACKET_SIZE = 1436
MAX_DIMENSION = 2040


def _cut_size(size: int) -> int:
    return ((size >> 3) & 0xFF) << 3


def rtp_depay() -> Wrapper:
    """Rebuild complete JPEG images from RTP/JPEG packets, pushed on the marker bit."""
    buf = bytearray()

    def wrapper(push: Writer) -> Writer:
        def write(packet: Packet):
            payload = packet.payload
            t = payload[4]
            # restart marker header follows the main header for these types
            b = payload[12:] if 64 <= t <= 127 else payload[8:]

            if not buf:
                q = payload[5]
                if q >= 128:
                    lqt, cqt = b[4:68], b[68:132]
                    b = b[132:]
                else:
                    lqt, cqt = make_tables(q)

                w = payload[6] << 3
                h = payload[7] << 3
                # restore sizes above the 2040 pixel limit of the format
                if w == _cut_size(2560) and h in (1920, 1440):
                    w = 2560
                elif w == _cut_size(3840) and h == _cut_size(2160):
                    w, h = 3840, 2160
                elif w == _cut_size(2304) and h == 1296:
                    w = 2304

                buf.extend(make_headers(t, w, h, lqt, cqt))

            buf.extend(b)

            if not packet.marker:
                return None

            if buf[-2] != 0xFF and buf[-1] != 0xD9:
                buf.extend(b"\xff\xd9")

            clone = replace(packet, payload=bytes(buf))
            buf.clear()
            return push(clone)

        return write

    return wrapper


def _fit(v: int) -> int:
    if v > MAX_DIMENSION:
        return MAX_DIMENSION
    if v & 3:
        return v & 3
    return v


def transcode(b: bytes) -> bytes:
    """Re-encode a JPEG into baseline 4:2:0 form with limited dimensions."""
    try:
        with Image.open(io.BytesIO(b)) as img:
            if img.format != "JPEG":
                raise ValueError("not a JPEG image")
            img.load()
            width, height = img.size
            w, h = _fit(width), _fit(height)
            if (w, h) != (width, height):
                x0 = (width - w) // 2
                y0 = (height - h) // 2
                img = img.crop((x0, y0, x0 + w, y0 + h))
            if img.mode != "RGB":
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=75, subsampling=2)
            return out.getvalue()
    except OSError as e:
        raise ValueError(f"invalid JPEG: {e}") from e


def rtp_pay() -> Wrapper:
    """Split JPEG images into RTP/JPEG packets."""
    sequencer = Sequencer()

    def wrapper(push: Writer) -> Writer:
        def write(packet: Packet):
            p = transcode(packet.payload)

            h1 = bytearray(8)
            h1[4] = 1  # type
            h1[5] = 255  # Q: tables carried in-band
            # MBZ=0, precision=0, length=128
            h2 = bytearray(b"\x00\x00\x00\x80")

            pos = 0
            jpg = None
            while jpg is None:
                if len(p) - pos < 4:
                    raise ValueError("truncated JPEG")
                if p[pos] != 0xFF:
                    return None
                marker = p[pos + 1]
                if marker == 0xD8:  # start of image
                    pos += 2
                    continue
                size = (int.from_bytes(p[pos + 2:pos + 4], "big") + 2) & 0xFFFF
                seg = p[pos:pos + size]
                if marker == 0xDB:  # quantization tables
                    for i in range(5, size, 65):
                        h2 += seg[i:i + 64]
                elif marker == 0xC0:  # start of frame
                    if seg[4] != 8:
                        return None
                    h = int.from_bytes(seg[5:7], "big")
                    w = int.from_bytes(seg[7:9], "big")
                    h1[6] = (w >> 3) & 0xFF
                    h1[7] = (h >> 3) & 0xFF
                elif marker == 0xDA:  # start of scan
                    jpg = p[pos + size:]
                pos += size

            offset = 0
            jpos = 0
            while True:
                if offset > 0:
                    h1[1:4] = (offset & 0xFFFFFF).to_bytes(3, "big")
                    head = bytes(h1)
                else:
                    head = bytes(h1) + bytes(h2)

                data_len = PACKET_SIZE - len(head)
                remaining = len(jpg) - jpos
                done = data_len >= remaining
                chunk = jpg[jpos:] if done else jpg[jpos:jpos + data_len]
                if not done:
                    jpos += data_len
                    offset += data_len

                push(
                    Packet(
                        version=VERSION_RTP,
                        marker=done,
                        sequence_number=sequencer.next_sequence_number(),
                        timestamp=packet.timestamp,
                        payload=head + chunk,
                    )
                )
                if done:
                    return None

        return write

    return wrapper