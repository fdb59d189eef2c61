"""Driver for the SHT3x temperature and humidity sensor."""

from __future__ import annotations

from typing import NamedTuple

from vocmux.common import bytes_to_uint16
from vocmux.i2c import I2CChannel
from vocmux.sht3x_defs import (
    SHT31_I2C_ADDR_44,
    Command,
    Mps,
    Repeatability,
    command_delay_usec,
    periodic_command,
    signal_humidity,
    signal_temperature,
    single_shot_command,
)

__all__ = ["RawMeasurement", "Measurement", "Sht3x", "DATA_READY_POLL_USEC"]

# Interval between status polls while waiting for periodic data.
DATA_READY_POLL_USEC = 100_000


class RawMeasurement(NamedTuple):
    """Temperature and humidity as the sensor reports them, in ticks."""

    temperature_ticks: int
    humidity_ticks: int


class Measurement(NamedTuple):
    """Temperature in degrees Celsius and relative humidity in %RH."""

    temperature: float
    humidity: float


class Sht3x:
    """One SHT3x sensor reached through an :class:`I2CChannel`."""

    def __init__(self, channel: I2CChannel, address: int = SHT31_I2C_ADDR_44) -> None:
        self.channel = channel
        self.address = address

    def _send(self, command: Command) -> None:
        self.channel.write_cmd(self.address, command)
        delay = command_delay_usec(command)
        if delay:
            self.channel.sleep_usec(delay)

    def _read_ticks(self) -> RawMeasurement:
        data = self.channel.read_data(self.address, 4)
        return RawMeasurement(bytes_to_uint16(data[0:2]), bytes_to_uint16(data[2:4]))

    def _query_ticks(self, command: Command) -> RawMeasurement:
        self._send(command)
        return self._read_ticks()

    def measure_single_shot(
        self,
        repeatability: Repeatability | int = Repeatability.HIGH,
        clock_stretching: bool = False,
    ) -> RawMeasurement:
        """Trigger one measurement and return the raw ticks."""
        return self._query_ticks(single_shot_command(repeatability, clock_stretching))

    def start_periodic_measurement(
        self, repeatability: Repeatability | int, mps: Mps | int
    ) -> None:
        """Put the sensor into periodic measurement mode."""
        self._send(periodic_command(repeatability, mps))

    def blocking_read_measurement(self) -> Measurement:
        """Wait until periodic data is ready, then read and convert it."""
        while (self.read_status_register() >> 6) & 0xF == 0:
            self.channel.sleep_usec(DATA_READY_POLL_USEC)
        raw = self.read_measurement()
        return Measurement(
            signal_temperature(raw.temperature_ticks),
            signal_humidity(raw.humidity_ticks),
        )

    def read_status_register(self) -> int:
        """Return the 16-bit status register."""
        self._send(Command.READ_STATUS_REGISTER)
        return bytes_to_uint16(self.channel.read_data(self.address, 2))

    def start_art_measurement(self) -> None:
        """Start accelerated-response-time measurement (4 Hz)."""
        self._send(Command.START_ART_MEASUREMENT)

    def read_measurement(self) -> RawMeasurement:
        """Fetch the latest periodic or ART measurement as raw ticks."""
        return self._query_ticks(Command.READ_MEASUREMENT)

    def stop_measurement(self) -> None:
        """Leave periodic mode and return to single-shot mode."""
        self._send(Command.STOP_MEASUREMENT)

    def enable_heater(self) -> None:
        """Switch on the internal heater."""
        self._send(Command.ENABLE_HEATER)

    def disable_heater(self) -> None:
        """Switch off the internal heater."""
        self._send(Command.DISABLE_HEATER)

    def clear_status_register(self) -> None:
        """Clear the flags in the status register."""
        self._send(Command.CLEAR_STATUS_REGISTER)

    def soft_reset(self) -> None:
        """Reset the sensor without cutting power."""
        self._send(Command.SOFT_RESET)