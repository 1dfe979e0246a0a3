"""JPEG header reconstruction for RTP/JPEG streams (RFC 2435, appendices A and B)."""

from __future__ import annotations

from typing import Tuple

JPEG_LUMA_QUANTIZER = bytes([
    16, 11, 10, 16, 24, 40, 51, 61,
    12, 12, 14, 19, 26, 58, 60, 55,
    14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62,
    18, 22, 37, 56, 68, 109, 103, 77,
    24, 35, 55, 64, 81, 104, 113, 92,
    49, 64, 78, 87, 103, 121, 120, 101,
    72, 92, 95, 98, 112, 100, 103, 99,
])

JPEG_CHROMA_QUANTIZER = bytes([
    17, 18, 24, 47, 99, 99, 99, 99,
    18, 21, 26, 66, 99, 99, 99, 99,
    24, 26, 56, 99, 99, 99, 99, 99,
    47, 66, 99, 99, 99, 99, 99, 99,
    99, 99, 99, 99, 99, 99, 99, 99,
    99, 99, 99, 99, 99, 99, 99, 99,
    99, 99, 99, 99, 99, 99, 99, 99,
    99, 99, 99, 99, 99, 99, 99, 99,
])

LUM_DC_CODELENS = bytes([0, 1, 5, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0])
LUM_DC_SYMBOLS = bytes(range(12))
LUM_AC_CODELENS = bytes([0, 2, 1, 3, 3, 2, 4, 3, 5, 5, 4, 4, 0, 0, 1, 0x7D])
LUM_AC_SYMBOLS = bytes([
    0x01, 0x02, 0x03, 0x00, 0x04, 0x11, 0x05, 0x12,
    0x21, 0x31, 0x41, 0x06, 0x13, 0x51, 0x61, 0x07,
    0x22, 0x71, 0x14, 0x32, 0x81, 0x91, 0xA1, 0x08,
    0x23, 0x42, 0xB1, 0xC1, 0x15, 0x52, 0xD1, 0xF0,
    0x24, 0x33, 0x62, 0x72, 0x82, 0x09, 0x0A, 0x16,
    0x17, 0x18, 0x19, 0x1A, 0x25, 0x26, 0x27, 0x28,
    0x29, 0x2A, 0x34, 0x35, 0x36, 0x37, 0x38, 0x39,
    0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48, 0x49,
    0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58, 0x59,
    0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68, 0x69,
    0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78, 0x79,
    0x7A, 0x83, 0x84, 0x85, 0x86, 0x87, 0x88, 0x89,
    0x8A, 0x92, 0x93, 0x94, 0x95, 0x96, 0x97, 0x98,
    0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5, 0xA6, 0xA7,
    0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4, 0xB5, 0xB6,
    0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3, 0xC4, 0xC5,
    0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2, 0xD3, 0xD4,
    0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA, 0xE1, 0xE2,
    0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9, 0xEA,
    0xF1, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
])
CHM_DC_CODELENS = bytes([0, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0])
CHM_DC_SYMBOLS = bytes(range(12))
CHM_AC_CODELENS = bytes([0, 2, 1, 2, 4, 4, 3, 4, 7, 5, 4, 4, 0, 1, 2, 0x77])
CHM_AC_SYMBOLS = bytes([
    0x00, 0x01, 0x02, 0x03, 0x11, 0x04, 0x05, 0x21,
    0x31, 0x06, 0x12, 0x41, 0x51, 0x07, 0x61, 0x71,
    0x13, 0x22, 0x32, 0x81, 0x08, 0x14, 0x42, 0x91,
    0xA1, 0xB1, 0xC1, 0x09, 0x23, 0x33, 0x52, 0xF0,
    0x15, 0x62, 0x72, 0xD1, 0x0A, 0x16, 0x24, 0x34,
    0xE1, 0x25, 0xF1, 0x17, 0x18, 0x19, 0x1A, 0x26,
    0x27, 0x28, 0x29, 0x2A, 0x35, 0x36, 0x37, 0x38,
    0x39, 0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48,
    0x49, 0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58,
    0x59, 0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68,
    0x69, 0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78,
    0x79, 0x7A, 0x82, 0x83, 0x84, 0x85, 0x86, 0x87,
    0x88, 0x89, 0x8A, 0x92, 0x93, 0x94, 0x95, 0x96,
    0x97, 0x98, 0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5,
    0xA6, 0xA7, 0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4,
    0xB5, 0xB6, 0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3,
    0xC4, 0xC5, 0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2,
    0xD3, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA,
    0xE2, 0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9,
    0xEA, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
])


def make_tables(q: int) -> Tuple[bytes, bytes]:
    """Return the luma and chroma quantization tables for quality factor q."""
    if q < 1:
        factor = 1
    elif q > 99:
        factor = 99
    else:
        factor = q

    if q < 50:
        factor = 5000 // factor
    elif q > 99:
        factor = 200 - factor * 2

    def scale(table: bytes) -> bytes:
        return bytes(min(max((v * factor + 50) // 100, 1), 255) for v in table)

    return scale(JPEG_LUMA_QUANTIZER), scale(JPEG_CHROMA_QUANTIZER)


def make_quant_header(qt: bytes, table_no: int) -> bytes:
    """Build a DQT segment holding one 8-bit table."""
    return bytes([0xFF, 0xDB, 0, 67, table_no & 0xFF]) + bytes(qt)


def make_huffman_header(
    codelens: bytes, symbols: bytes, table_no: int, table_class: int
) -> bytes:
    """Build a DHT segment holding one table."""
    header = bytes([
        0xFF, 0xC4, 0,
        (3 + len(codelens) + len(symbols)) & 0xFF,
        ((table_class << 4) | table_no) & 0xFF,
    ])
    return header + bytes(codelens) + bytes(symbols)


def make_headers(t: int, w: int, h: int, lqt: bytes, cqt: bytes) -> bytes:
    """Build the JPEG headers, up to and including SOS, for an RTP/JPEG frame."""
    sampling = 0x21 if t == 0 else 0x22
    w &= 0xFFFF
    h &= 0xFFFF

    out = bytearray(b"\xff\xd8")
    out += make_quant_header(lqt, 0)
    out += make_quant_header(cqt, 1)
    out += bytes([
        0xFF, 0xC0, 0, 17, 8,
        h >> 8, h & 0xFF,
        w >> 8, w & 0xFF,
        3, 0, sampling, 0, 1, 0x11, 1, 2, 0x11, 1,
    ])
    out += make_huffman_header(LUM_DC_CODELENS, LUM_DC_SYMBOLS, 0, 0)
    out += make_huffman_header(LUM_AC_CODELENS, LUM_AC_SYMBOLS, 0, 1)
    out += make_huffman_header(CHM_DC_CODELENS, CHM_DC_SYMBOLS, 1, 0)
    out += make_huffman_header(CHM_AC_CODELENS, CHM_AC_SYMBOLS, 1, 1)
    out += bytes([0xFF, 0xDA, 0, 12, 3, 0, 0, 1, 0x11, 2, 0x11, 0, 63, 0])
    return bytes(out)