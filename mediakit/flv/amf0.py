"""Reader for AMF0-encoded FLV script data."""

from __future__ import annotations

import struct
from typing import Any, Dict, Optional

TYPE_NUMBER = 0
TYPE_BOOLEAN = 1
TYPE_STRING = 2
TYPE_OBJECT = 3
TYPE_ECMA_ARRAY = 8
TYPE_OBJECT_END = 9


class AMF0Error(ValueError):
    """Raised when AMF0 data is truncated or holds an unsupported type."""

    def __init__(self, message: str = "amf0 read error") -> None:
        super().__init__(message)


class AMF0:
    """Sequential reader over an AMF0 buffer."""

    def __init__(self, buf: bytes) -> None:
        self.buf = bytes(buf)
        self.pos = 0

    def read_meta_data(self) -> Optional[Dict[str, Any]]:
        """Read an onMetaData record; None if the data is not one or is broken."""
        try:
            if self.read_byte() != TYPE_STRING:
                return None
            if self.read_string() != "onMetaData":
                return None
            kind = self.read_byte()
            if kind == TYPE_OBJECT:
                return self.read_object()
            if kind == TYPE_ECMA_ARRAY:
                return self.read_ecma_array()
        except AMF0Error:
            return None
        return None

    def read_map(self) -> Dict[Any, Any]:
        """Read key/value item pairs until the end of the buffer."""
        result: Dict[Any, Any] = {}
        while self.pos < len(self.buf):
            key = self.read_item()
            result[key] = self.read_item()
        return result

    def read_item(self) -> Any:
        """Read one typed value."""
        kind = self.read_byte()
        if kind == TYPE_NUMBER:
            return self.read_number()
        if kind == TYPE_BOOLEAN:
            return self.read_byte() != 0
        if kind == TYPE_STRING:
            return self.read_string()
        if kind == TYPE_OBJECT:
            return self.read_object()
        if kind == TYPE_OBJECT_END:
            return None
        raise AMF0Error()

    def read_byte(self) -> int:
        if self.pos >= len(self.buf):
            raise AMF0Error()
        value = self.buf[self.pos]
        self.pos += 1
        return value

    def read_number(self) -> float:
        if self.pos + 8 >= len(self.buf):
            raise AMF0Error()
        (value,) = struct.unpack_from(">d", self.buf, self.pos)
        self.pos += 8
        return value

    def read_string(self) -> str:
        if self.pos + 2 >= len(self.buf):
            raise AMF0Error()
        size = int.from_bytes(self.buf[self.pos:self.pos + 2], "big")
        self.pos += 2
        if self.pos + size >= len(self.buf):
            raise AMF0Error()
        value = self.buf[self.pos:self.pos + size].decode("utf-8", errors="replace")
        self.pos += size
        return value

    def read_object(self) -> Dict[str, Any]:
        """Read key/value properties up to the empty-key terminator."""
        result: Dict[str, Any] = {}
        while True:
            key = self.read_string()
            value = self.read_item()
            if key == "":
                return result
            result[key] = value

    def read_ecma_array(self) -> Dict[str, Any]:
        if self.pos + 4 >= len(self.buf):
            raise AMF0Error()
        self.pos += 4  # declared size is not used
        return self.read_object()