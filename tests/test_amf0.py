import struct

import pytest

from mediakit.flv.amf0 import AMF0, AMF0Error


def _str(s):
    data = s.encode()
    return len(data).to_bytes(2, "big") + data


def _num(x):
    return b"\x00" + struct.pack(">d", x)


PROPS = (
    _str("width") + _num(1280)
    + _str("stereo") + b"\x01\x01"
    + _str("encoder") + b"\x02" + _str("Lavf")
    + _str("") + b"\x09"
)
EXPECTED = {"width": 1280.0, "stereo": True, "encoder": "Lavf"}


def test_meta_data_object():
    data = b"\x02" + _str("onMetaData") + b"\x03" + PROPS
    assert AMF0(data).read_meta_data() == EXPECTED


def test_meta_data_ecma_array():
    data = b"\x02" + _str("onMetaData") + b"\x08" + b"\x00\x00\x00\x03" + PROPS
    assert AMF0(data).read_meta_data() == EXPECTED


def test_meta_data_wrong_name():
    data = b"\x02" + _str("onCuePoint") + b"\x03" + PROPS
    assert AMF0(data).read_meta_data() is None


def test_meta_data_not_string():
    assert AMF0(b"\x03" + PROPS).read_meta_data() is None


def test_meta_data_truncated():
    data = b"\x02" + _str("onMetaData") + b"\x03" + PROPS[:10]
    assert AMF0(data).read_meta_data() is None


def test_read_object_end_value_is_none():
    reader = AMF0(_str("a") + b"\x09" + _str("") + b"\x09")
    assert reader.read_object() == {"a": None}


def test_read_map():
    reader = AMF0(b"\x02" + _str("a") + b"\x01\x01")
    assert reader.read_map() == {"a": True}
    assert reader.pos == len(reader.buf)


def test_read_number_advances():
    reader = AMF0(struct.pack(">d", 2.5) + b"\x00")
    assert reader.read_number() == 2.5
    assert reader.pos == 8


def test_read_number_at_end_fails():
    with pytest.raises(AMF0Error):
        AMF0(struct.pack(">d", 2.5)).read_number()


def test_read_string():
    reader = AMF0(_str("ab") + b"\x00")
    assert reader.read_string() == "ab"
    assert reader.pos == 4


def test_read_string_at_end_fails():
    with pytest.raises(AMF0Error):
        AMF0(_str("ab")).read_string()


def test_read_byte_empty():
    with pytest.raises(AMF0Error):
        AMF0(b"").read_byte()


def test_read_item_unknown_type():
    with pytest.raises(AMF0Error):
        AMF0(b"\x07\x00").read_item()


def test_read_ecma_array_too_short():
    with pytest.raises(AMF0Error):
        AMF0(b"\x00\x00\x00\x01").read_ecma_array()