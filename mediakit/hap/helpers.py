"""Identifier generation and event parsing for HomeKit."""

from __future__ import annotations

import hashlib
import json
import secrets
from typing import Any, Union

from mediakit.hap.character import Character


def generate_id(name: str) -> str:
    """Stable MAC-style device id derived from a name."""
    digest = hashlib.sha512(name.encode()).digest()
    return ":".join(f"{b:02X}" for b in digest[:6])


def generate_uuid() -> str:
    """Random identifier in 8-4-4-4-12 hex form."""
    s = secrets.token_bytes(16).hex()
    return f"{s[:8]}-{s[8:12]}-{s[12:16]}-{s[16:20]}-{s[20:]}"


def unmarshal_event(body: Union[bytes, str, Any]) -> Character:
    """Parse the JSON body of an EVENT message into its single characteristic."""
    if hasattr(body, "read"):
        body = body.read()
    data = json.loads(body)
    chars = data.get("characteristics") or []
    if len(chars) != 1:
        raise ValueError(f"expected one characteristic in event, got {len(chars)}")
    return Character.from_dict(chars[0])