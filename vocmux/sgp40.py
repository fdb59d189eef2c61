"""Driver for the SGP40 VOC sensor."""

from __future__ import annotations

from vocmux.common import bytes_to_uint16
from vocmux.i2c import FrameBuilder, I2CChannel

__all__ = [
    "SGP40_I2C_ADDRESS",
    "DEFAULT_HUMIDITY_TICKS",
    "DEFAULT_TEMPERATURE_TICKS",
    "SELF_TEST_PASSED",
    "SELF_TEST_FAILED",
    "Sgp40",
]

SGP40_I2C_ADDRESS = 0x59

# Sending these disables humidity compensation (50 %RH, 25 degC).
DEFAULT_HUMIDITY_TICKS = 0x8000
DEFAULT_TEMPERATURE_TICKS = 0x6666

SELF_TEST_PASSED = 0xD400
SELF_TEST_FAILED = 0x4B00

_MEASURE_RAW_SIGNAL = 0x260F
_EXECUTE_SELF_TEST = 0x280E
_TURN_HEATER_OFF = 0x3615
_GET_SERIAL_NUMBER = 0x3682

_MEASURE_DELAY_USEC = 30_000
_SELF_TEST_DELAY_USEC = 320_000
_SHORT_DELAY_USEC = 1_000


class Sgp40:
    """One SGP40 sensor reached through an :class:`I2CChannel`."""

    def __init__(self, channel: I2CChannel, address: int = SGP40_I2C_ADDRESS) -> None:
        self.channel = channel
        self.address = address

    def _send(self, frame: FrameBuilder, delay_usec: int) -> None:
        self.channel.write_data(self.address, frame.to_bytes())
        self.channel.sleep_usec(delay_usec)

    def measure_raw_signal(
        self,
        relative_humidity: int = DEFAULT_HUMIDITY_TICKS,
        temperature: int = DEFAULT_TEMPERATURE_TICKS,
    ) -> int:
        """Measure and return the raw VOC signal in ticks.

        ``relative_humidity`` and ``temperature`` are compensation inputs in
        sensor ticks; the defaults leave compensation disabled.
        """
        frame = (
            FrameBuilder()
            .add_command(_MEASURE_RAW_SIGNAL)
            .add_uint16(relative_humidity)
            .add_uint16(temperature)
        )
        self._send(frame, _MEASURE_DELAY_USEC)
        return bytes_to_uint16(self.channel.read_data(self.address, 2))

    def execute_self_test(self) -> int:
        """Run the built-in self test; 0xD400 means passed, 0x4B00 failed."""
        self._send(FrameBuilder().add_command(_EXECUTE_SELF_TEST), _SELF_TEST_DELAY_USEC)
        return bytes_to_uint16(self.channel.read_data(self.address, 2))

    def turn_heater_off(self) -> None:
        """Switch the hotplate off and put the sensor into idle mode."""
        self._send(FrameBuilder().add_command(_TURN_HEATER_OFF), _SHORT_DELAY_USEC)

    def get_serial_number(self) -> tuple[int, int, int]:
        """Return the 48-bit serial number as three 16-bit words."""
        self._send(FrameBuilder().add_command(_GET_SERIAL_NUMBER), _SHORT_DELAY_USEC)
        data = self.channel.read_data(self.address, 6)
        return (
            bytes_to_uint16(data[0:2]),
            bytes_to_uint16(data[2:4]),
            bytes_to_uint16(data[4:6]),
        )