"""Raw HTTP responses as HomeKit accessories send them."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

MIME_TLV8 = "application/pairing+tlv8"
MIME_JSON = "application/hap+json"

URI_PAIR_SETUP = "/pair-setup"
URI_PAIR_VERIFY = "/pair-verify"
URI_PAIRINGS = "/pairings"
URI_ACCESSORIES = "/accessories"
URI_CHARACTERISTICS = "/characteristics"
URI_RESOURCE = "/resource"


def _status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def _send(w: Any, data: bytes) -> None:
    if hasattr(w, "sendall"):
        w.sendall(data)
    else:
        w.write(data)


def write_status_code(w: Any, status_code: int) -> None:
    """Write a response that has only a status line."""
    line = f"HTTP/1.1 {status_code} {_status_text(status_code)}\n\n"
    _send(w, line.encode())


def write_response(w: Any, status_code: int, content_type: str, body: bytes) -> None:
    """Write a response with a body and its length."""
    header = (
        f"HTTP/1.1 {status_code} {_status_text(status_code)}\n"
        f"Content-Type: {content_type}\n"
        f"Content-Length: {len(body)}\n\n"
    )
    _send(w, header.encode() + bytes(body))


def write_chunked(w: Any, content_type: str, body: bytes) -> None:
    """Write a 200 response whose body is sent as a single chunk."""
    header = (
        "HTTP/1.1 200 OK\n"
        f"Content-Type: {content_type}\n"
        "Transfer-Encoding: chunked\n\n"
        f"{len(body):x}\n"
    )
    _send(w, header.encode() + bytes(body) + b"\n0\n\n")