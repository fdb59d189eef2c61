"""Multiplexed SHT3x/SGP40 sampling, averaging and CSV logging."""

from __future__ import annotations

import re
import struct
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Protocol

from vocmux.common import SensirionError
from vocmux.i2c import I2CChannel
from vocmux.sht3x_defs import Repeatability, signal_humidity, signal_temperature

__all__ = [
    "CONFIG_FILE",
    "MAX_PORTS",
    "TCA_ADDR_70",
    "TCA_ADDR_71",
    "TCA_ADDR_72",
    "TCA_ADDR_73",
    "TCA_ADDR_74",
    "TCA_ADDR_75",
    "TCA_ADDR_76",
    "TCA_ADDR_77",
    "DEFAULT_OVERSAMPLE_COUNT",
    "SAMPLE_INTERVAL_SEC",
    "Config",
    "Measurement",
    "SensorAccumulator",
    "Multiplexer",
    "read_config",
    "get_timestamp",
    "make_accumulators",
    "single_measure",
    "measure_oversampled",
    "sample_all_ports",
    "csv_header",
    "format_row",
    "finalize_averages",
]

CONFIG_FILE = "../config.txt"
MAX_PORTS = 8

TCA_ADDR_70 = 0x70
TCA_ADDR_71 = 0x71
TCA_ADDR_72 = 0x72
TCA_ADDR_73 = 0x73
TCA_ADDR_74 = 0x74
TCA_ADDR_75 = 0x75
TCA_ADDR_76 = 0x76
TCA_ADDR_77 = 0x77

DEFAULT_OVERSAMPLE_COUNT = 5
SAMPLE_INTERVAL_SEC = 1.0

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


def _f32(value: float) -> float:
    return struct.unpack(">f", struct.pack(">f", value))[0]


def _atoi(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return _f32(float(match.group(1))) if match else 0.0


class _HumiditySensor(Protocol):
    def measure_single_shot(self, repeatability, clock_stretching): ...


class _VocSensor(Protocol):
    def measure_raw_signal(self, relative_humidity, temperature) -> int: ...


@dataclass
class Config:
    """Sampling settings read from the configuration file."""

    oversample_count: int = DEFAULT_OVERSAMPLE_COUNT
    humidity_offset: float = 0.0


@dataclass(frozen=True)
class Measurement:
    """Temperature (degC), relative humidity (%RH) and raw VOC signal (ticks)."""

    temperature: float
    humidity: float
    voc: int


@dataclass
class SensorAccumulator:
    """Running sums of the readings taken on one multiplexer port."""

    temp_sum: float = 0.0
    hum_sum: float = 0.0
    voc_sum: int = 0
    sample_count: int = 0

    def add(self, measurement: Measurement) -> None:
        """Fold one reading into the sums."""
        self.temp_sum = _f32(self.temp_sum + measurement.temperature)
        self.hum_sum = _f32(self.hum_sum + measurement.humidity)
        self.voc_sum = (self.voc_sum + measurement.voc) & 0xFFFFFFFF
        self.sample_count += 1

    def average(self, oversample_count: int) -> Measurement | None:
        """Return the mean reading, or None unless every sample succeeded."""
        if oversample_count <= 0 or self.sample_count != oversample_count:
            return None
        return Measurement(
            _f32(self.temp_sum / oversample_count),
            _f32(self.hum_sum / oversample_count),
            (self.voc_sum // oversample_count) & 0xFFFF,
        )


class Multiplexer:
    """A TCA9548A-style eight-port I2C multiplexer."""

    def __init__(self, channel: I2CChannel, address: int = TCA_ADDR_70) -> None:
        self.channel = channel
        self.address = address

    def select_port(self, port: int) -> None:
        """Route the bus to ``port`` (0 to 7)."""
        if not 0 <= port < MAX_PORTS:
            raise ValueError(f"multiplexer port must be 0..{MAX_PORTS - 1}, got {port}")
        self.channel.write_data(self.address, bytes([1 << port]))

    def detect(self) -> bool:
        """Return True if any device other than the multiplexer acknowledges."""
        for address in range(128):
            if address == self.address:
                continue
            try:
                self.channel.write_data(address, b"")
            except SensirionError:
                continue
            return True
        return False


def read_config(path: str | Path = CONFIG_FILE) -> Config:
    """Read ``key = value`` settings; raise OSError if the file cannot be read."""
    config = Config()
    with open(path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            entry = _parse_line(line)
            if entry is None:
                continue
            key, value = entry
            if key == "oversample_count":
                config.oversample_count = _atoi(value)
                if config.oversample_count <= 0:
                    config.oversample_count = DEFAULT_OVERSAMPLE_COUNT
            elif key == "humidity_offset":
                config.humidity_offset = _atof(value)
                if config.humidity_offset < 0:
                    config.humidity_offset = 0.0
    return config


def _parse_line(line: str) -> tuple[str, str] | None:
    if not line or line.startswith("#"):
        return None
    parts = line.split(None, 1)
    if len(parts) < 2:
        return None
    key, rest = parts
    rest = rest.lstrip()
    if not rest.startswith("="):
        return None
    values = rest[1:].split(None, 1)
    if not values:
        return None
    return key, values[0]


def get_timestamp(now: datetime | None = None) -> str:
    """Format ``now`` (default: current local time) as YYYY-MM-DDTHH:MM:SS."""
    return (now or datetime.now()).strftime(_TIMESTAMP_FORMAT)


def make_accumulators() -> list[SensorAccumulator]:
    """Return one empty accumulator per multiplexer port."""
    return [SensorAccumulator() for _ in range(MAX_PORTS)]


def single_measure(
    sht: _HumiditySensor, sgp: _VocSensor, humidity_offset: float = 0.0
) -> Measurement:
    """Read the SHT3x, apply the humidity offset, and read the compensated VOC signal."""
    raw = sht.measure_single_shot(Repeatability.HIGH, False)
    offset_ticks = int(_f32(_f32(humidity_offset * 65535.0) / 100.0))
    humidity_ticks = (raw.humidity_ticks + offset_ticks) & 0xFFFF
    temperature_ticks = raw.temperature_ticks
    humidity = signal_humidity(humidity_ticks)
    temperature = signal_temperature(temperature_ticks)
    voc = sgp.measure_raw_signal(humidity_ticks, temperature_ticks)
    return Measurement(temperature, humidity, voc)


def measure_oversampled(
    sht: _HumiditySensor,
    sgp: _VocSensor,
    oversample_count: int,
    humidity_offset: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Measurement:
    """Average ``oversample_count`` readings taken one second apart."""
    if oversample_count <= 0:
        raise ValueError(f"oversample_count must be positive, got {oversample_count}")
    accumulator = SensorAccumulator()
    for _ in range(oversample_count):
        try:
            measurement = single_measure(sht, sgp, humidity_offset)
        finally:
            sleep(SAMPLE_INTERVAL_SEC)
        accumulator.add(measurement)
    average = accumulator.average(oversample_count)
    assert average is not None
    return average


def sample_all_ports(
    mux: Multiplexer,
    sht: _HumiditySensor,
    sgp: _VocSensor,
    accumulators: Sequence[SensorAccumulator],
    humidity_offset: float = 0.0,
    out: IO[str] | None = None,
) -> list[tuple[int, Measurement]]:
    """Take one reading on every port with a device and add it to its accumulator."""
    out = out if out is not None else sys.stdout
    taken = []
    for port, accumulator in enumerate(accumulators[:MAX_PORTS]):
        try:
            mux.select_port(port)
        except SensirionError:
            pass
        if not mux.detect():
            continue
        try:
            measurement = single_measure(sht, sgp, humidity_offset)
        except SensirionError:
            continue
        accumulator.add(measurement)
        taken.append((port, measurement))
        print(
            f"Port {port} | Temp: {measurement.temperature:.2f} °C | "
            f"Humidity: {measurement.humidity:.2f} % | VOC: {measurement.voc} ticks",
            file=out,
        )
    return taken


def csv_header() -> str:
    """Return the CSV header line (without newline)."""
    columns = ["Timestamp"]
    for port in range(MAX_PORTS):
        columns += [f"T{port}", f"H{port}", f"VOC{port}"]
    return ",".join(columns)


def format_row(
    accumulators: Sequence[SensorAccumulator], oversample_count: int, timestamp: str
) -> str:
    """Return one CSV row of per-port averages; incomplete ports read NaN."""
    fields = [timestamp]
    for accumulator in accumulators[:MAX_PORTS]:
        average = accumulator.average(oversample_count)
        if average is None:
            fields += ["NaN", "NaN", "NaN"]
        else:
            fields += [
                f"{average.temperature:.2f}",
                f"{average.humidity:.2f}",
                str(average.voc),
            ]
    return ",".join(fields)


def finalize_averages(
    logfile: IO[str],
    accumulators: Sequence[SensorAccumulator],
    oversample_count: int,
    timestamp: str,
) -> None:
    """Append the averaged row to ``logfile`` and flush it."""
    logfile.write(format_row(accumulators, oversample_count, timestamp) + "\n")
    logfile.flush()