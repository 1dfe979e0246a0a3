"""Encrypted HomeKit session framing (ChaCha20-Poly1305 over a stream)."""

from __future__ import annotations

import threading
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

PACKET_LENGTH_MAX = 0x400
MAC_SIZE = 16

_SALT = b"Control-Salt"
_READ_INFO = b"Control-Read-Encryption-Key"
_WRITE_INFO = b"Control-Write-Encryption-Key"


def _hkdf_sha512(key: bytes, salt: bytes, info: bytes) -> bytes:
    return HKDF(algorithm=hashes.SHA512(), length=32, salt=salt, info=info).derive(key)


def _nonce(count: int) -> bytes:
    return b"\x00\x00\x00\x00" + count.to_bytes(8, "little")


class Secure:
    """Encrypts writes and decrypts reads on a connection after pair-verify."""

    def __init__(self, shared_key: bytes, is_server: bool, conn: Any = None) -> None:
        key1 = _hkdf_sha512(bytes(shared_key), _SALT, _READ_INFO)
        key2 = _hkdf_sha512(bytes(shared_key), _SALT, _WRITE_INFO)
        if is_server:
            encrypt_key, decrypt_key = key1, key2
        else:
            encrypt_key, decrypt_key = key2, key1
        self.conn = conn
        self._encrypt = ChaCha20Poly1305(encrypt_key)
        self._decrypt = ChaCha20Poly1305(decrypt_key)
        self._encrypt_count = 0
        self._decrypt_count = 0
        self._lock = threading.Lock()

    def _read_exact(self, n: int) -> bytes:
        out = bytearray()
        while len(out) < n:
            if hasattr(self.conn, "recv"):
                chunk = self.conn.recv(n - len(out))
            else:
                chunk = self.conn.read(n - len(out))
            if not chunk:
                raise EOFError(f"expected {n} bytes, got {len(out)}")
            out += chunk
        return bytes(out)

    def _send(self, data: bytes) -> None:
        if hasattr(self.conn, "sendall"):
            self.conn.sendall(data)
        else:
            self.conn.write(data)

    def read(self) -> bytes:
        """Read and decrypt frames until one shorter than the maximum ends the message."""
        out = bytearray()
        while True:
            length_bytes = self._read_exact(2)
            length = int.from_bytes(length_bytes, "little")
            enc = self._read_exact(length)
            mac = self._read_exact(MAC_SIZE)

            nonce = _nonce(self._decrypt_count)
            self._decrypt_count += 1
            try:
                msg = self._decrypt.decrypt(nonce, enc + mac, length_bytes)
            except InvalidTag as e:
                raise ValueError("frame authentication failed") from e
            out += msg

            if length < PACKET_LENGTH_MAX:
                return bytes(out)

    def write(self, b: bytes) -> int:
        """Encrypt and send data in frames of at most 1024 bytes; return bytes sent."""
        b = bytes(b)
        chunks = [b[i:i + PACKET_LENGTH_MAX] for i in range(0, len(b), PACKET_LENGTH_MAX)]
        if len(b) % PACKET_LENGTH_MAX == 0:
            # a full last frame is followed by an empty one that ends the message
            chunks.append(b"")

        written = 0
        with self._lock:
            for chunk in chunks:
                length_bytes = len(chunk).to_bytes(2, "little")
                nonce = _nonce(self._encrypt_count)
                self._encrypt_count += 1
                sealed = self._encrypt.encrypt(nonce, chunk, length_bytes)
                self._send(length_bytes + sealed)
                written += len(chunk)
        return written