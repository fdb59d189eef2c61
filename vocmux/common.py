"""Error types and big-endian conversions shared by the sensor drivers."""

from __future__ import annotations

import struct

__all__ = [
    "SensirionError",
    "CrcError",
    "I2CBusError",
    "ByteCountError",
    "bytes_to_uint16",
    "bytes_to_uint32",
    "bytes_to_int16",
    "bytes_to_int32",
    "bytes_to_float",
    "uint16_to_bytes",
    "uint32_to_bytes",
    "int16_to_bytes",
    "int32_to_bytes",
    "float_to_bytes",
]

WORD_SIZE = 2
COMMAND_SIZE = 2


class SensirionError(Exception):
    """Base class for failures talking to a sensor."""

    code: int = 0


class CrcError(SensirionError):
    """A received word did not match its checksum."""

    code = 1


class I2CBusError(SensirionError):
    """A transfer on the I2C bus failed or was incomplete."""

    code = 2


class ByteCountError(SensirionError):
    """A payload length was not a whole number of words."""

    code = 4


def _unpack(fmt: str, data: bytes | bytearray | memoryview) -> int | float:
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise ValueError(f"need at least {size} bytes, got {len(data)}")
    return struct.unpack_from(fmt, data)[0]


def bytes_to_uint16(data: bytes | bytearray | memoryview) -> int:
    """Decode the first two bytes (MSB first) as an unsigned 16-bit value."""
    return int(_unpack(">H", data))


def bytes_to_uint32(data: bytes | bytearray | memoryview) -> int:
    """Decode the first four bytes (MSB first) as an unsigned 32-bit value."""
    return int(_unpack(">I", data))


def bytes_to_int16(data: bytes | bytearray | memoryview) -> int:
    """Decode the first two bytes (MSB first) as a signed 16-bit value."""
    return int(_unpack(">h", data))


def bytes_to_int32(data: bytes | bytearray | memoryview) -> int:
    """Decode the first four bytes (MSB first) as a signed 32-bit value."""
    return int(_unpack(">i", data))


def bytes_to_float(data: bytes | bytearray | memoryview) -> float:
    """Decode the first four bytes (MSB first) as an IEEE-754 single."""
    return float(_unpack(">f", data))


def uint16_to_bytes(value: int) -> bytes:
    """Encode the low 16 bits of ``value`` MSB first."""
    return struct.pack(">H", value & 0xFFFF)


def uint32_to_bytes(value: int) -> bytes:
    """Encode the low 32 bits of ``value`` MSB first."""
    return struct.pack(">I", value & 0xFFFFFFFF)


def int16_to_bytes(value: int) -> bytes:
    """Encode a signed value as two's-complement 16 bits, MSB first."""
    return struct.pack(">H", value & 0xFFFF)


def int32_to_bytes(value: int) -> bytes:
    """Encode a signed value as two's-complement 32 bits, MSB first."""
    return struct.pack(">I", value & 0xFFFFFFFF)


def float_to_bytes(value: float) -> bytes:
    """Encode ``value`` as an IEEE-754 single, MSB first."""
    return struct.pack(">f", value)