"""Command codes, measurement modes and tick conversions for the SHT3x sensor."""

from __future__ import annotations

import struct
from enum import IntEnum

__all__ = [
    "SHT3X_I2C_ADDR_44",
    "SHT3X_I2C_ADDR_45",
    "SHT31_I2C_ADDR_44",
    "SHT31_I2C_ADDR_45",
    "Command",
    "Repeatability",
    "Mps",
    "signal_temperature",
    "signal_humidity",
    "single_shot_command",
    "periodic_command",
    "command_delay_usec",
]

# Every SHT3x variant answers on one of these two addresses.
SHT3X_I2C_ADDR_44 = 0x44
SHT3X_I2C_ADDR_45 = 0x45
SHT31_I2C_ADDR_44 = SHT3X_I2C_ADDR_44
SHT31_I2C_ADDR_45 = SHT3X_I2C_ADDR_45

_TICKS_FULL_SCALE = 65535.0


class Command(IntEnum):
    """16-bit command words understood by the sensor."""

    MEASURE_SINGLE_SHOT_HIGH_REPEATABILITY = 0x2400
    MEASURE_SINGLE_SHOT_HIGH_REPEATABILITY_CLOCK_STRETCHING = 0x2C06
    MEASURE_SINGLE_SHOT_MEDIUM_REPEATABILITY = 0x240B
    MEASURE_SINGLE_SHOT_MEDIUM_REPEATABILITY_CLOCK_STRETCHING = 0x2C0D
    MEASURE_SINGLE_SHOT_LOW_REPEATABILITY = 0x2416
    MEASURE_SINGLE_SHOT_LOW_REPEATABILITY_CLOCK_STRETCHING = 0x2C10
    START_MEASUREMENT_0_5_MPS_HIGH_REPEATABILITY = 0x2032
    START_MEASUREMENT_0_5_MPS_MEDIUM_REPEATABILITY = 0x2024
    START_MEASUREMENT_0_5_MPS_LOW_REPEATABILITY = 0x202F
    START_MEASUREMENT_1_MPS_HIGH_REPEATABILITY = 0x2130
    START_MEASUREMENT_1_MPS_MEDIUM_REPEATABILITY = 0x2126
    START_MEASUREMENT_1_MPS_LOW_REPEATABILITY = 0x212D
    START_MEASUREMENT_2_MPS_HIGH_REPEATABILITY = 0x2236
    START_MEASUREMENT_2_MPS_MEDIUM_REPEATABILITY = 0x2220
    START_MEASUREMENT_2_MPS_LOW_REPEATABILITY = 0x222B
    START_MEASUREMENT_4_MPS_HIGH_REPEATABILITY = 0x2334
    START_MEASUREMENT_4_MPS_MEDIUM_REPEATABILITY = 0x2322
    START_MEASUREMENT_4_MPS_LOW_REPEATABILITY = 0x2329
    START_MEASUREMENT_10_MPS_HIGH_REPEATABILITY = 0x2737
    START_MEASUREMENT_10_MPS_MEDIUM_REPEATABILITY = 0x2721
    START_MEASUREMENT_10_MPS_LOW_REPEATABILITY = 0x273A
    START_ART_MEASUREMENT = 0x2B32
    READ_MEASUREMENT = 0xE000
    STOP_MEASUREMENT = 0x3093
    ENABLE_HEATER = 0x306D
    DISABLE_HEATER = 0x3066
    READ_STATUS_REGISTER = 0xF32D
    CLEAR_STATUS_REGISTER = 0x3041
    SOFT_RESET = 0x30A2


class Repeatability(IntEnum):
    """Measurement repeatability; higher takes longer and is less noisy."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2


class Mps(IntEnum):
    """Measurements per second in periodic mode (0 means one every two seconds)."""

    EVERY_TWO_SECONDS = 0
    ONE_PER_SECOND = 1
    TWO_PER_SECOND = 2
    FOUR_PER_SECOND = 4
    TEN_PER_SECOND = 10


_SINGLE_SHOT = {
    (Repeatability.HIGH, False): Command.MEASURE_SINGLE_SHOT_HIGH_REPEATABILITY,
    (Repeatability.HIGH, True): Command.MEASURE_SINGLE_SHOT_HIGH_REPEATABILITY_CLOCK_STRETCHING,
    (Repeatability.MEDIUM, False): Command.MEASURE_SINGLE_SHOT_MEDIUM_REPEATABILITY,
    (Repeatability.MEDIUM, True): Command.MEASURE_SINGLE_SHOT_MEDIUM_REPEATABILITY_CLOCK_STRETCHING,
    (Repeatability.LOW, False): Command.MEASURE_SINGLE_SHOT_LOW_REPEATABILITY,
    (Repeatability.LOW, True): Command.MEASURE_SINGLE_SHOT_LOW_REPEATABILITY_CLOCK_STRETCHING,
}

_PERIODIC = {
    (Repeatability.HIGH, Mps.EVERY_TWO_SECONDS): Command.START_MEASUREMENT_0_5_MPS_HIGH_REPEATABILITY,
    (Repeatability.MEDIUM, Mps.EVERY_TWO_SECONDS): Command.START_MEASUREMENT_0_5_MPS_MEDIUM_REPEATABILITY,
    (Repeatability.LOW, Mps.EVERY_TWO_SECONDS): Command.START_MEASUREMENT_0_5_MPS_LOW_REPEATABILITY,
    (Repeatability.HIGH, Mps.ONE_PER_SECOND): Command.START_MEASUREMENT_1_MPS_HIGH_REPEATABILITY,
    (Repeatability.MEDIUM, Mps.ONE_PER_SECOND): Command.START_MEASUREMENT_1_MPS_MEDIUM_REPEATABILITY,
    (Repeatability.LOW, Mps.ONE_PER_SECOND): Command.START_MEASUREMENT_1_MPS_LOW_REPEATABILITY,
    (Repeatability.HIGH, Mps.TWO_PER_SECOND): Command.START_MEASUREMENT_2_MPS_HIGH_REPEATABILITY,
    (Repeatability.MEDIUM, Mps.TWO_PER_SECOND): Command.START_MEASUREMENT_2_MPS_MEDIUM_REPEATABILITY,
    (Repeatability.LOW, Mps.TWO_PER_SECOND): Command.START_MEASUREMENT_2_MPS_LOW_REPEATABILITY,
    (Repeatability.HIGH, Mps.FOUR_PER_SECOND): Command.START_MEASUREMENT_4_MPS_HIGH_REPEATABILITY,
    (Repeatability.MEDIUM, Mps.FOUR_PER_SECOND): Command.START_MEASUREMENT_4_MPS_MEDIUM_REPEATABILITY,
    (Repeatability.LOW, Mps.FOUR_PER_SECOND): Command.START_MEASUREMENT_4_MPS_LOW_REPEATABILITY,
    (Repeatability.HIGH, Mps.TEN_PER_SECOND): Command.START_MEASUREMENT_10_MPS_HIGH_REPEATABILITY,
    (Repeatability.MEDIUM, Mps.TEN_PER_SECOND): Command.START_MEASUREMENT_10_MPS_MEDIUM_REPEATABILITY,
    (Repeatability.LOW, Mps.TEN_PER_SECOND): Command.START_MEASUREMENT_10_MPS_LOW_REPEATABILITY,
}

_REPEATABILITY_DELAY_USEC = {
    Repeatability.HIGH: 16 * 1000,
    Repeatability.MEDIUM: 7 * 1000,
    Repeatability.LOW: 5 * 1000,
}

_DELAY_USEC: dict[Command, int] = {
    **{cmd: _REPEATABILITY_DELAY_USEC[rep] for (rep, _), cmd in _SINGLE_SHOT.items()},
    **{cmd: _REPEATABILITY_DELAY_USEC[rep] for (rep, _), cmd in _PERIODIC.items()},
    Command.START_ART_MEASUREMENT: 0,
    Command.READ_MEASUREMENT: 0,
    Command.STOP_MEASUREMENT: 1 * 1000,
    Command.ENABLE_HEATER: 10 * 1000,
    Command.DISABLE_HEATER: 10 * 1000,
    Command.READ_STATUS_REGISTER: 10 * 1000,
    Command.CLEAR_STATUS_REGISTER: 10 * 1000,
    Command.SOFT_RESET: 2 * 1000,
}


def _to_single(value: float) -> float:
    return struct.unpack(">f", struct.pack(">f", value))[0]


def _check_ticks(ticks: int) -> int:
    if not 0 <= ticks <= 0xFFFF:
        raise ValueError(f"ticks must fit in 16 bits, got {ticks}")
    return ticks


def signal_temperature(ticks: int) -> float:
    """Convert raw temperature ticks to degrees Celsius: -45 + 175 * ticks / 65535."""
    return _to_single(-45 + (float(_check_ticks(ticks)) * 175.0) / _TICKS_FULL_SCALE)


def signal_humidity(ticks: int) -> float:
    """Convert raw humidity ticks to %RH: 100 * ticks / 65535."""
    return _to_single((100 * float(_check_ticks(ticks))) / _TICKS_FULL_SCALE)


def single_shot_command(
    repeatability: Repeatability | int, clock_stretching: bool = False
) -> Command:
    """Return the single-shot measurement command for the given mode."""
    return _SINGLE_SHOT[(Repeatability(repeatability), bool(clock_stretching))]


def periodic_command(repeatability: Repeatability | int, mps: Mps | int) -> Command:
    """Return the command that starts periodic measurement in the given mode."""
    return _PERIODIC[(Repeatability(repeatability), Mps(mps))]


def command_delay_usec(command: Command | int) -> int:
    """Return how long to wait after sending ``command`` before the next transfer."""
    return _DELAY_USEC[Command(command)]