import base64
import json

import pytest

from mediakit.hap.character import DEVICE_AID, MIME_JSON, Character


class Sink:
    def __init__(self):
        self.chunks = []

    def write(self, data):
        self.chunks.append(data)
        return len(data)


class Broken:
    def write(self, data):
        raise OSError("closed")


def split_event(data):
    head, body = data.split(b"\r\n\r\n", 1)
    return head.decode().split("\r\n"), body


def test_to_dict_omits_empty_fields():
    assert Character(iid=5).to_dict() == {"iid": 5}


def test_to_dict_keeps_false_value():
    assert Character(iid=2, value=False).to_dict() == {"iid": 2, "value": False}


def test_from_dict_round_trip():
    data = {
        "aid": 1,
        "iid": 10,
        "type": "25",
        "format": "bool",
        "value": True,
        "ev": True,
        "perms": ["pr", "pw", "ev"],
        "description": "On",
    }
    assert Character.from_dict(data).to_dict() == data


def test_str_is_json():
    char = Character(iid=3, value=7)
    assert json.loads(str(char)) == {"iid": 3, "value": 7}


def test_str_error_for_unserializable_value():
    assert str(Character(iid=1, value=object())) == "ERROR"


def test_generate_event_format():
    lines, body = split_event(Character(aid=9, iid=11, value=True).generate_event())
    assert lines[0] == "EVENT/1.0 200 OK"
    assert f"Content-Length: {len(body)}" in lines
    assert f"Content-Type: {MIME_JSON}" in lines
    assert json.loads(body) == {
        "characteristics": [{"aid": DEVICE_AID, "iid": 11, "value": True}]
    }


def test_notify_skips_ignored_and_drops_broken():
    char = Character(iid=4, value=1)
    a, b, broken = Sink(), Sink(), Broken()
    for w in (a, b, broken):
        char.add_listener(w)
    char.notify_listeners(b)
    assert a.chunks == [char.generate_event()]
    assert b.chunks == []
    # broken listener was removed, so a second notify still reaches only sinks
    char.notify_listeners(None)
    assert len(a.chunks) == 2
    assert len(b.chunks) == 1


def test_remove_listener_stops_events():
    char = Character(iid=4, format="bool", value=False)
    sink = Sink()
    char.add_listener(sink)
    char.remove_listener(sink)
    char.set(True)
    assert sink.chunks == []
    assert char.value is True


def test_set_writes_and_notifies():
    char = Character(iid=8, format="bool", value=False)
    sink = Sink()
    char.add_listener(sink)
    char.set(1.0)
    _, body = split_event(sink.chunks[0])
    assert json.loads(body)["characteristics"][0]["value"] is True


@pytest.mark.parametrize("given, expected", [(True, True), (0.0, False), (3, True), (0, False)])
def test_write_bool(given, expected):
    char = Character(format="bool")
    char.write(given)
    assert char.read_bool() is expected


def test_write_bool_ignores_other_types():
    char = Character(format="bool", value=True)
    char.write("nope")
    assert char.value is True


def test_read_bool_type_error():
    with pytest.raises(TypeError):
        Character(value="yes").read_bool()


def test_read_tlv8_known_bytes():
    char = Character(format="tlv8", value=base64.b64encode(b"\x01\x03abc\x06\x01\x02").decode())
    assert char.read_tlv8() == {1: b"abc", 6: b"\x02"}


def test_tlv8_round_trip_with_fragments():
    long = bytes(range(256)) * 2
    char = Character(format="tlv8")
    char.write({1: "client", 3: long, 6: 1})
    assert char.read_tlv8() == {1: b"client", 3: long, 6: b"\x01"}


def test_write_tlv8_raw_bytes():
    char = Character(format="tlv8")
    char.write(b"\x07\x01\x00")
    assert char.read_tlv8() == {7: b"\x00"}


def test_read_tlv8_errors():
    with pytest.raises(TypeError):
        Character(value=True).read_tlv8()
    with pytest.raises(ValueError):
        Character(value=base64.b64encode(b"\x01\x05ab").decode()).read_tlv8()