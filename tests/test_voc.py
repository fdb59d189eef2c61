import io
from datetime import datetime

import pytest

from vocmux.common import CrcError, I2CBusError
from vocmux.i2c import I2CChannel
from vocmux.sht3x import RawMeasurement
from vocmux.sht3x_defs import signal_humidity, signal_temperature
from vocmux.voc import (
    MAX_PORTS,
    TCA_ADDR_70,
    Config,
    Measurement,
    Multiplexer,
    SensorAccumulator,
    csv_header,
    finalize_averages,
    format_row,
    get_timestamp,
    make_accumulators,
    measure_oversampled,
    read_config,
    sample_all_ports,
    single_measure,
)


class FakeSht:
    def __init__(self, temperature_ticks=0x6666, humidity_ticks=0x8000, fail=False):
        self.raw = RawMeasurement(temperature_ticks, humidity_ticks)
        self.fail = fail
        self.calls = []

    def measure_single_shot(self, repeatability, clock_stretching):
        self.calls.append((repeatability, clock_stretching))
        if self.fail:
            raise CrcError("bad")
        return self.raw


class FakeSgp:
    def __init__(self, voc=30000):
        self.voc = voc
        self.calls = []

    def measure_raw_signal(self, relative_humidity, temperature):
        self.calls.append((relative_humidity, temperature))
        return self.voc


class FakeBus:
    def __init__(self, present=()):
        self.present = set(present)
        self.writes = []

    def write(self, address, data):
        if address not in self.present:
            raise I2CBusError("nack")
        self.writes.append((address, bytes(data)))

    def read(self, address, count):
        raise I2CBusError("no data")

    def sleep_usec(self, useconds):
        pass


class FakeMux:
    def __init__(self, ports):
        self.ports = set(ports)
        self.current = None
        self.selected = []

    def select_port(self, port):
        self.current = port
        self.selected.append(port)

    def detect(self):
        return self.current in self.ports


def test_read_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_config(tmp_path / "missing.txt")


def test_read_config_values(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("oversample_count = 10\nhumidity_offset = 2.5\n")
    assert read_config(path) == Config(10, 2.5)


def test_read_config_ignores_comments_and_bad_lines(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("# oversample_count = 7\n\noversample_count=3\nunknown = 4\n")
    assert read_config(path) == Config()


def test_read_config_clamps_invalid_values(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("oversample_count = 0\nhumidity_offset = -3\n")
    config = read_config(path)
    assert config.oversample_count == 5
    assert config.humidity_offset == 0.0


def test_read_config_leading_number(tmp_path):
    path = tmp_path / "config.txt"
    path.write_text("oversample_count = 12abc\nhumidity_offset = x\n")
    config = read_config(path)
    assert config.oversample_count == 12
    assert config.humidity_offset == 0.0


def test_get_timestamp_format():
    assert get_timestamp(datetime(2025, 6, 2, 13, 4, 5)) == "2025-06-02T13:04:05"


def test_make_accumulators_independent():
    accumulators = make_accumulators()
    assert len(accumulators) == MAX_PORTS
    accumulators[0].add(Measurement(1.0, 2.0, 3))
    assert accumulators[1] == SensorAccumulator()
    assert accumulators[0].sample_count == 1


def test_accumulator_average_requires_all_samples():
    accumulator = SensorAccumulator()
    for _ in range(2):
        accumulator.add(Measurement(20.0, 50.0, 30000))
    assert accumulator.average(2) == Measurement(20.0, 50.0, 30000)
    assert accumulator.average(3) is None


def test_accumulator_voc_average_truncates():
    accumulator = SensorAccumulator()
    accumulator.add(Measurement(0.0, 0.0, 3))
    accumulator.add(Measurement(0.0, 0.0, 4))
    assert accumulator.average(2).voc == 3


def test_mux_select_port_writes_bit():
    bus = FakeBus(present={TCA_ADDR_70})
    mux = Multiplexer(I2CChannel(bus))
    mux.select_port(3)
    mux.select_port(0)
    assert bus.writes == [(TCA_ADDR_70, bytes([1 << 3])), (TCA_ADDR_70, b"\x01")]


@pytest.mark.parametrize("port", [8, -1])
def test_mux_select_port_rejects_out_of_range(port):
    mux = Multiplexer(I2CChannel(FakeBus(present={TCA_ADDR_70})))
    with pytest.raises(ValueError):
        mux.select_port(port)


def test_mux_detect():
    assert Multiplexer(I2CChannel(FakeBus(present={0x44}))).detect() is True
    assert Multiplexer(I2CChannel(FakeBus())).detect() is False
    assert Multiplexer(I2CChannel(FakeBus(present={TCA_ADDR_70}))).detect() is False


def test_single_measure_without_offset():
    sht, sgp = FakeSht(1000, 2000), FakeSgp(123)
    measurement = single_measure(sht, sgp, 0.0)
    assert measurement == Measurement(signal_temperature(1000), signal_humidity(2000), 123)
    assert sgp.calls == [(2000, 1000)]


def test_single_measure_applies_offset_to_humidity_ticks():
    sht, sgp = FakeSht(1000, 2000), FakeSgp()
    measurement = single_measure(sht, sgp, 1.0)
    assert sgp.calls == [(2000 + 655, 1000)]
    assert measurement.humidity == signal_humidity(2000 + 655)


def test_single_measure_propagates_error():
    sgp = FakeSgp()
    with pytest.raises(CrcError):
        single_measure(FakeSht(fail=True), sgp, 0.0)
    assert sgp.calls == []


def test_measure_oversampled_average_of_constant():
    sleeps = []
    sht, sgp = FakeSht(1000, 2000), FakeSgp(500)
    result = measure_oversampled(sht, sgp, 3, 0.0, sleeps.append)
    assert result == single_measure(FakeSht(1000, 2000), FakeSgp(500), 0.0)
    assert sleeps == [1.0, 1.0, 1.0]


def test_measure_oversampled_sleeps_before_failing():
    sleeps = []
    with pytest.raises(CrcError):
        measure_oversampled(FakeSht(fail=True), FakeSgp(), 3, 0.0, sleeps.append)
    assert sleeps == [1.0]


def test_measure_oversampled_rejects_zero():
    with pytest.raises(ValueError):
        measure_oversampled(FakeSht(), FakeSgp(), 0, 0.0, lambda s: None)


def test_sample_all_ports_only_detected():
    accumulators = make_accumulators()
    mux = FakeMux({1, 5})
    out = io.StringIO()
    taken = sample_all_ports(mux, FakeSht(), FakeSgp(), accumulators, 0.0, out)
    assert [port for port, _ in taken] == [1, 5]
    assert mux.selected == list(range(MAX_PORTS))
    assert [acc.sample_count for acc in accumulators] == [0, 1, 0, 0, 0, 1, 0, 0]
    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Port 1 | Temp: ")
    assert lines[1].endswith("VOC: 30000 ticks")


def test_sample_all_ports_skips_failed_measurement():
    accumulators = make_accumulators()
    out = io.StringIO()
    taken = sample_all_ports(FakeMux({0}), FakeSht(fail=True), FakeSgp(), accumulators, 0.0, out)
    assert taken == []
    assert out.getvalue() == ""
    assert accumulators[0].sample_count == 0


def test_csv_header():
    header = csv_header()
    assert header.startswith("Timestamp,T0,H0,VOC0,T1")
    assert header.endswith(",T7,H7,VOC7")
    assert len(header.split(",")) == 1 + 3 * MAX_PORTS


def test_format_row_all_missing():
    assert format_row(make_accumulators(), 5, "ts") == "ts" + ",NaN,NaN,NaN" * MAX_PORTS


def test_format_row_with_complete_port():
    accumulators = make_accumulators()
    for _ in range(2):
        accumulators[0].add(Measurement(20.0, 50.0, 30000))
    accumulators[1].add(Measurement(20.0, 50.0, 30000))
    row = format_row(accumulators, 2, "ts")
    assert row == "ts,20.00,50.00,30000" + ",NaN,NaN,NaN" * (MAX_PORTS - 1)


def test_finalize_averages_writes_line():
    out = io.StringIO()
    accumulators = make_accumulators()
    finalize_averages(out, accumulators, 1, "stamp")
    assert out.getvalue() == format_row(accumulators, 1, "stamp") + "\n"