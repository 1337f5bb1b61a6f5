from __future__ import annotations
from typing import Any, Dict, Protocol as TypingProtocol, Union

import base64, binascii

import msgpack

from .errors import DecodeError

class TextCodec(TypingProtocol):
    name: str
    def encode(self, data: bytes) -> str: ...
    def decode(self, text: str) -> bytes: ...
    def encoded_size(self, n: int) -> int: ...
    def max_decoded_size(self, limit: int) -> int: ...

class Codec(TypingProtocol):
    name: str
    def dumps(self, obj: Any) -> bytes: ...
    def loads(self, data: bytes) -> Any: ...

class Base64Codec:
    """
    RFC 4648 base64 with padding. Output is plain ASCII, so one character
    is one byte of message body. Every 3 raw bytes become 4 characters.
    """
    name = "base64"

    def encode(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    def decode(self, text: str) -> bytes:
        try:
            return base64.b64decode(text.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise DecodeError(f"Malformed base64 ({len(text)} chars): {e}") from e

    def encoded_size(self, n: int) -> int:
        return 4 * ((n + 2) // 3)

    def max_decoded_size(self, limit: int) -> int:
        """Largest raw length whose encoding fits in `limit` characters."""
        return (max(0, limit) // 4) * 3

class MsgPackCodec:
    name = "msgpack"
    def dumps(self, obj: Any) -> bytes:
        return msgpack.packb(obj, use_bin_type=True)
    def loads(self, data: bytes) -> Any:
        try:
            return msgpack.unpackb(data, raw=False)
        except (ValueError, msgpack.UnpackException) as e:
            raise DecodeError(f"Malformed msgpack blob: {e}") from e

class Codecs:
    _registry: Dict[str, Union[TextCodec, Codec]] = {
        "base64": Base64Codec(),
        "msgpack": MsgPackCodec(),
    }

    @classmethod
    def get(cls, name: str) -> Union[TextCodec, Codec]:
        if name not in cls._registry:
            raise ValueError(f"Unknown codec: {name}")
        return cls._registry[name]
