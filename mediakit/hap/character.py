"""HomeKit characteristic: JSON form, value encoding and event listeners."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

DEVICE_AID = 1
MIME_JSON = "application/hap+json"

FORMAT_TLV8 = "tlv8"
FORMAT_BOOL = "bool"

_TLV_FRAGMENT = 255


class Writer(Protocol):
    def write(self, data: bytes) -> Any: ...


TLVItems = Union[Mapping[int, Any], Iterable[Tuple[int, Any]]]


def _tlv_value(v: Any) -> bytes:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    if isinstance(v, str):
        return v.encode()
    if isinstance(v, bool):
        return bytes([int(v)])
    if isinstance(v, int):
        if v < 0:
            raise ValueError(f"negative TLV8 integer: {v}")
        return v.to_bytes(max(1, (v.bit_length() + 7) // 8), "little")
    raise TypeError(f"unsupported TLV8 value: {type(v).__name__}")


def _encode_tlv8(items: TLVItems) -> bytes:
    pairs = items.items() if isinstance(items, Mapping) else items
    out = bytearray()
    for tag, value in pairs:
        data = _tlv_value(value)
        if not data:
            out += bytes([tag & 0xFF, 0])
            continue
        for pos in range(0, len(data), _TLV_FRAGMENT):
            chunk = data[pos:pos + _TLV_FRAGMENT]
            out += bytes([tag & 0xFF, len(chunk)])
            out += chunk
    return bytes(out)


def _decode_tlv8(data: bytes) -> Dict[int, bytes]:
    result: Dict[int, bytes] = {}
    pos = 0
    prev_tag: Optional[int] = None
    prev_len = 0
    while pos < len(data):
        if pos + 2 > len(data):
            raise ValueError("truncated TLV8 item")
        tag, size = data[pos], data[pos + 1]
        pos += 2
        if pos + size > len(data):
            raise ValueError("truncated TLV8 value")
        chunk = data[pos:pos + size]
        pos += size
        if tag == prev_tag and prev_len == _TLV_FRAGMENT:
            result[tag] += chunk
        else:
            result[tag] = chunk
        prev_tag, prev_len = tag, size
    return result


@dataclass
class Character:
    """One characteristic of a HomeKit service."""

    aid: int = 0
    iid: int = 0
    type: str = ""
    format: str = ""
    value: Any = None
    event: Any = None
    perms: List[str] = field(default_factory=list)
    description: str = ""
    _listeners: Dict[Writer, bool] = field(
        default_factory=dict, repr=False, compare=False
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Character":
        """Build a characteristic from its HAP JSON object."""
        return cls(
            aid=data.get("aid", 0) or 0,
            iid=data.get("iid", 0) or 0,
            type=data.get("type", "") or "",
            format=data.get("format", "") or "",
            value=data.get("value"),
            event=data.get("ev"),
            perms=list(data.get("perms") or []),
            description=data.get("description", "") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """HAP JSON object; empty optional fields are left out."""
        d: Dict[str, Any] = {}
        if self.aid:
            d["aid"] = self.aid
        d["iid"] = self.iid
        if self.type:
            d["type"] = self.type
        if self.format:
            d["format"] = self.format
        if self.value is not None:
            d["value"] = self.value
        if self.event is not None:
            d["ev"] = self.event
        if self.perms:
            d["perms"] = list(self.perms)
        if self.description:
            d["description"] = self.description
        return d

    def __str__(self) -> str:
        try:
            return json.dumps(self.to_dict(), separators=(",", ":"))
        except (TypeError, ValueError):
            return "ERROR"

    def add_listener(self, w: Writer) -> None:
        self._listeners[w] = True

    def remove_listener(self, w: Writer) -> None:
        self._listeners.pop(w, None)

    def notify_listeners(self, ignore: Optional[Writer] = None) -> None:
        """Send an event with the current value to every listener but ignore."""
        if not self._listeners:
            return
        data = self.generate_event()
        for w in list(self._listeners):
            if w is ignore:
                continue
            try:
                w.write(data)
            except (OSError, ValueError):
                # a broken listener is simply dropped
                self.remove_listener(w)

    def generate_event(self) -> bytes:
        """Raw EVENT message carrying this characteristic's value."""
        char = Character(aid=DEVICE_AID, iid=self.iid, value=self.value)
        body = json.dumps(
            {"characteristics": [char.to_dict()]}, separators=(",", ":")
        ).encode()
        head = (
            "EVENT/1.0 200 OK\r\n"
            f"Content-Length: {len(body)}\r\n"
            f"Content-Type: {MIME_JSON}\r\n"
            "\r\n"
        )
        return head.encode() + body

    def set(self, v: Any) -> None:
        """Write a new value and notify all listeners."""
        self.write(v)
        self.notify_listeners(None)

    def write(self, v: Any) -> None:
        """Store a new value in the form the characteristic's format needs."""
        if self.format == FORMAT_TLV8:
            data = bytes(v) if isinstance(v, (bytes, bytearray)) else _encode_tlv8(v)
            self.value = base64.b64encode(data).decode()
        elif self.format == FORMAT_BOOL:
            if isinstance(v, bool):
                self.value = v
            elif isinstance(v, (int, float)):
                self.value = v != 0

    def read_tlv8(self) -> Dict[int, bytes]:
        """Decode the base64 TLV8 value into a mapping of tag to bytes."""
        if not isinstance(self.value, str):
            raise TypeError("value is not a TLV8 string")
        try:
            data = base64.b64decode(self.value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 value: {e}") from e
        return _decode_tlv8(data)

    def read_bool(self) -> bool:
        if not isinstance(self.value, bool):
            raise TypeError("value is not a bool")
        return self.value