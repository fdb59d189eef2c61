"""CRC-protected word framing and command transfers for Sensirion sensors."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from vocmux.common import (
    COMMAND_SIZE,
    WORD_SIZE,
    ByteCountError,
    CrcError,
    float_to_bytes,
    uint16_to_bytes,
    uint32_to_bytes,
)

__all__ = [
    "CRC8_POLYNOMIAL",
    "CRC8_INIT",
    "CRC8_LEN",
    "MAX_BUFFER_WORDS",
    "I2CBus",
    "generate_crc",
    "check_crc",
    "fill_cmd_send_buf",
    "strip_crc",
    "FrameBuilder",
    "I2CChannel",
]

CRC8_POLYNOMIAL = 0x31
CRC8_INIT = 0xFF
CRC8_LEN = 1
MAX_BUFFER_WORDS = 32

_CHUNK = WORD_SIZE + CRC8_LEN
_GENERAL_CALL_ADDRESS = 0x00
_GENERAL_CALL_RESET = b"\x06"


class I2CBus(Protocol):
    """What a channel needs from the underlying adapter."""

    def read(self, address: int, count: int) -> bytes: ...

    def write(self, address: int, data: bytes) -> None: ...

    def sleep_usec(self, useconds: int) -> None: ...


def generate_crc(data: bytes | bytearray | memoryview) -> int:
    """Return the 8-bit Sensirion checksum (poly 0x31, init 0xFF) of ``data``."""
    crc = CRC8_INIT
    for byte in bytes(data):
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ CRC8_POLYNOMIAL) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
    return crc


def check_crc(data: bytes | bytearray | memoryview, checksum: int) -> None:
    """Raise :class:`CrcError` unless ``checksum`` matches ``data``."""
    expected = generate_crc(data)
    if expected != checksum:
        raise CrcError(
            f"checksum mismatch: got 0x{checksum:02x}, expected 0x{expected:02x}"
        )


def _word_with_crc(word: bytes) -> bytes:
    return word + bytes([generate_crc(word)])


def fill_cmd_send_buf(cmd: int, args: Iterable[int] = ()) -> bytes:
    """Build a command frame: the command, then each argument word and its CRC."""
    frame = bytearray(uint16_to_bytes(cmd))
    for arg in args:
        frame += _word_with_crc(uint16_to_bytes(arg))
    return bytes(frame)


def strip_crc(raw: bytes | bytearray | memoryview) -> bytes:
    """Check and drop the CRC byte that follows every word of ``raw``."""
    raw = bytes(raw)
    if len(raw) % _CHUNK:
        raise ByteCountError(
            f"{len(raw)} bytes is not a whole number of {_CHUNK}-byte words"
        )
    data = bytearray()
    for start in range(0, len(raw), _CHUNK):
        word = raw[start : start + WORD_SIZE]
        check_crc(word, raw[start + WORD_SIZE])
        data += word
    return bytes(data)


class FrameBuilder:
    """Accumulates a write frame of a command followed by CRC-protected words."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def add_command(self, command: int) -> "FrameBuilder":
        """Append a 16-bit command without a checksum."""
        self._buffer += uint16_to_bytes(command)
        return self

    def add_uint16(self, value: int) -> "FrameBuilder":
        """Append one word and its checksum."""
        self._buffer += _word_with_crc(uint16_to_bytes(value))
        return self

    def add_int16(self, value: int) -> "FrameBuilder":
        """Append a signed word (two's complement) and its checksum."""
        return self.add_uint16(value & 0xFFFF)

    def _add_four(self, raw: bytes) -> "FrameBuilder":
        self._buffer += _word_with_crc(raw[:WORD_SIZE])
        self._buffer += _word_with_crc(raw[WORD_SIZE:])
        return self

    def add_uint32(self, value: int) -> "FrameBuilder":
        """Append two words, high word first, each with its checksum."""
        return self._add_four(uint32_to_bytes(value))

    def add_int32(self, value: int) -> "FrameBuilder":
        """Append a signed 32-bit value as two checksummed words."""
        return self.add_uint32(value & 0xFFFFFFFF)

    def add_float(self, value: float) -> "FrameBuilder":
        """Append an IEEE-754 single as two checksummed words."""
        return self._add_four(float_to_bytes(value))

    def add_bytes(self, data: bytes | bytearray | memoryview) -> "FrameBuilder":
        """Append raw bytes word by word, each word followed by its checksum."""
        data = bytes(data)
        if len(data) % WORD_SIZE:
            raise ByteCountError(f"{len(data)} bytes is not a whole number of words")
        for start in range(0, len(data), WORD_SIZE):
            self._buffer += _word_with_crc(data[start : start + WORD_SIZE])
        return self

    def to_bytes(self) -> bytes:
        """Return the frame built so far."""
        return bytes(self._buffer)


class I2CChannel:
    """Word-level transfers with CRC checking over an I2C bus."""

    def __init__(self, bus: I2CBus) -> None:
        self.bus = bus

    def write_data(self, address: int, data: bytes | bytearray | memoryview) -> None:
        """Send ``data`` unchanged to ``address``."""
        self.bus.write(address, bytes(data))

    def read_data(self, address: int, expected_length: int) -> bytes:
        """Read ``expected_length`` payload bytes, checking and dropping CRCs."""
        if expected_length % WORD_SIZE:
            raise ByteCountError(
                f"{expected_length} bytes is not a whole number of words"
            )
        size = (expected_length // WORD_SIZE) * _CHUNK
        return strip_crc(self.bus.read(address, size))

    def read_words_as_bytes(self, address: int, num_words: int) -> bytes:
        """Read ``num_words`` words and return their bytes in wire order."""
        return self.read_data(address, num_words * WORD_SIZE)

    def read_words(self, address: int, num_words: int) -> list[int]:
        """Read ``num_words`` words and return them as integers."""
        raw = self.read_words_as_bytes(address, num_words)
        return [
            int.from_bytes(raw[start : start + WORD_SIZE], "big")
            for start in range(0, len(raw), WORD_SIZE)
        ]

    def write_cmd(self, address: int, command: int) -> None:
        """Send a bare command."""
        frame = fill_cmd_send_buf(command)
        self.bus.write(address, frame[:COMMAND_SIZE])

    def write_cmd_with_args(
        self, address: int, command: int, words: Iterable[int]
    ) -> None:
        """Send a command followed by checksummed argument words."""
        self.bus.write(address, fill_cmd_send_buf(command, words))

    def delayed_read_cmd(
        self, address: int, command: int, delay_us: int, num_words: int
    ) -> list[int]:
        """Send a command, wait ``delay_us`` microseconds, then read words back."""
        self.write_cmd(address, command)
        if delay_us:
            self.bus.sleep_usec(delay_us)
        return self.read_words(address, num_words)

    def read_cmd(self, address: int, command: int, num_words: int) -> list[int]:
        """Send a command and read words back without waiting."""
        return self.delayed_read_cmd(address, command, 0, num_words)

    def general_call_reset(self) -> None:
        """Reset every device on the bus that supports the general call."""
        self.bus.write(_GENERAL_CALL_ADDRESS, _GENERAL_CALL_RESET)

    def sleep_usec(self, useconds: int) -> None:
        """Block for at least ``useconds`` microseconds."""
        self.bus.sleep_usec(useconds)