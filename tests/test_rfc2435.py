import pytest

from mediakit.mjpeg.rfc2435 import (
    CHM_AC_CODELENS,
    CHM_AC_SYMBOLS,
    JPEG_LUMA_QUANTIZER,
    LUM_DC_CODELENS,
    LUM_DC_SYMBOLS,
    make_headers,
    make_huffman_header,
    make_quant_header,
    make_tables,
)


@pytest.mark.parametrize("q", [0, 1, 25, 50, 75, 99, 100, 127])
def test_tables_are_64_bytes_in_range(q):
    lqt, cqt = make_tables(q)
    assert len(lqt) == 64 and len(cqt) == 64
    assert all(1 <= v <= 255 for v in lqt + cqt)


def test_lowest_quality_saturates():
    lqt, cqt = make_tables(0)
    assert set(lqt) == {255}
    assert set(cqt) == {255}


def test_quality_99_does_not_exceed_base_table():
    lqt, _ = make_tables(99)
    assert all(a <= b for a, b in zip(lqt, JPEG_LUMA_QUANTIZER))


def test_lower_quality_gives_coarser_tables():
    low, _ = make_tables(10)
    high, _ = make_tables(40)
    assert all(a >= b for a, b in zip(low, high))


def test_quant_header_layout():
    qt = bytes(range(64))
    header = make_quant_header(qt, 1)
    assert header[:5] == b"\xff\xdb\x00\x43\x01"
    assert header[5:] == qt


def test_huffman_header_layout():
    header = make_huffman_header(CHM_AC_CODELENS, CHM_AC_SYMBOLS, 1, 1)
    assert header[:3] == b"\xff\xc4\x00"
    assert header[3] == 3 + len(CHM_AC_CODELENS) + len(CHM_AC_SYMBOLS)
    assert header[4] == 0x11
    assert header[5:] == CHM_AC_CODELENS + CHM_AC_SYMBOLS


def test_headers_start_and_end():
    lqt, cqt = make_tables(50)
    headers = make_headers(0, 640, 480, lqt, cqt)
    assert headers[:2] == b"\xff\xd8"
    assert headers.endswith(bytes([0xFF, 0xDA, 0, 12, 3, 0, 0, 1, 0x11, 2, 0x11, 0, 63, 0]))
    assert make_quant_header(lqt, 0) in headers
    assert make_quant_header(cqt, 1) in headers
    assert make_huffman_header(LUM_DC_CODELENS, LUM_DC_SYMBOLS, 0, 0) in headers


@pytest.mark.parametrize("t,sampling", [(0, 0x21), (1, 0x22), (65, 0x22)])
def test_headers_frame_size_and_sampling(t, sampling):
    lqt, cqt = make_tables(50)
    headers = make_headers(t, 640, 480, lqt, cqt)
    sof = headers.index(b"\xff\xc0")
    assert int.from_bytes(headers[sof + 5:sof + 7], "big") == 480
    assert int.from_bytes(headers[sof + 7:sof + 9], "big") == 640
    assert headers[sof + 11] == sampling