# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Key and value serializers.

The wire protocol only carries bytes. A serializer turns whatever the
caller passes as a key or value into those bytes; responses are always
returned as raw bytes.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class Serializer(ABC):
    @abstractmethod
    def serialize(self, data: Any) -> bytes:
        pass


class BytesSerializer(Serializer):
    """Accept only bytes-like values."""

    def serialize(self, data: Any) -> bytes:
        if isinstance(data, bytes):
            return data
        if isinstance(data, (bytearray, memoryview)):
            return bytes(data)
        raise TypeError(f"BytesSerializer expects bytes, got {type(data).__name__}")


class StringSerializer(Serializer):
    """Pass bytes through, encode anything else via str() as UTF-8."""

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding

    def serialize(self, data: Any) -> bytes:
        if isinstance(data, bytes):
            return data
        if isinstance(data, (bytearray, memoryview)):
            return bytes(data)
        if data is None:
            raise TypeError("Cannot serialize None")
        if isinstance(data, str):
            return data.encode(self._encoding)
        return str(data).encode(self._encoding)


class JsonSerializer(Serializer):
    def __init__(self, encoder: Optional[Callable] = None):
        self._encoder = encoder

    def serialize(self, data: Any) -> bytes:
        return json.dumps(data, default=self._encoder).encode("utf-8")


def as_bytes(data: Any) -> bytes:
    """Coerce a name, expression or column value with the default rules."""
    return _DEFAULT.serialize(data)


_DEFAULT = StringSerializer()
