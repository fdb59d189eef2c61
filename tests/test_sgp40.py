import pytest

from vocmux.common import CrcError, I2CBusError
from vocmux.i2c import FrameBuilder, I2CChannel
from vocmux.sgp40 import (
    DEFAULT_HUMIDITY_TICKS,
    DEFAULT_TEMPERATURE_TICKS,
    SELF_TEST_PASSED,
    SGP40_I2C_ADDRESS,
    Sgp40,
)


class FakeBus:
    def __init__(self, responses=(), fail_write=False):
        self.writes = []
        self.reads = []
        self.sleeps = []
        self._responses = list(responses)
        self._fail_write = fail_write

    def write(self, address, data):
        if self._fail_write:
            raise I2CBusError("nack")
        self.writes.append((address, bytes(data)))

    def read(self, address, count):
        self.reads.append((address, count))
        data = self._responses.pop(0)
        assert len(data) == count
        return data

    def sleep_usec(self, useconds):
        self.sleeps.append(useconds)


def words(*values):
    builder = FrameBuilder()
    for value in values:
        builder.add_uint16(value)
    return builder.to_bytes()


def make(responses=(), **kwargs):
    bus = FakeBus(responses, **kwargs)
    return bus, Sgp40(I2CChannel(bus))


def test_measure_raw_signal_frame_and_result():
    bus, sgp = make([words(31234)])
    assert sgp.measure_raw_signal() == 31234
    expected = (
        FrameBuilder()
        .add_command(0x260F)
        .add_uint16(DEFAULT_HUMIDITY_TICKS)
        .add_uint16(DEFAULT_TEMPERATURE_TICKS)
        .to_bytes()
    )
    assert bus.writes == [(SGP40_I2C_ADDRESS, expected)]
    assert expected[:2] == b"\x26\x0f"
    assert len(expected) == 8
    assert bus.sleeps == [30000]
    assert bus.reads == [(SGP40_I2C_ADDRESS, 3)]


def test_measure_raw_signal_passes_compensation_words():
    bus, sgp = make([words(1)])
    sgp.measure_raw_signal(0x1234, 0x5678)
    frame = bus.writes[0][1]
    assert frame[2:4] == b"\x12\x34"
    assert frame[5:7] == b"\x56\x78"


def test_known_crc_response_decodes():
    bus, sgp = make([b"\xbe\xef\x92"])
    assert sgp.measure_raw_signal() == 0xBEEF


def test_bad_crc_raises():
    bus, sgp = make([b"\xbe\xef\x00"])
    with pytest.raises(CrcError):
        sgp.measure_raw_signal()


def test_execute_self_test():
    bus, sgp = make([words(SELF_TEST_PASSED)])
    assert sgp.execute_self_test() == SELF_TEST_PASSED
    assert bus.writes == [(SGP40_I2C_ADDRESS, b"\x28\x0e")]
    assert bus.sleeps == [320000]


def test_turn_heater_off_sends_command_only():
    bus, sgp = make()
    sgp.turn_heater_off()
    assert bus.writes == [(SGP40_I2C_ADDRESS, b"\x36\x15")]
    assert bus.sleeps == [1000]
    assert bus.reads == []


def test_get_serial_number():
    bus, sgp = make([words(0x0001, 0x0002, 0x0003)])
    assert sgp.get_serial_number() == (1, 2, 3)
    assert bus.writes == [(SGP40_I2C_ADDRESS, b"\x36\x82")]
    assert bus.reads == [(SGP40_I2C_ADDRESS, 9)]


def test_write_failure_stops_before_read():
    bus, sgp = make(fail_write=True)
    with pytest.raises(I2CBusError):
        sgp.execute_self_test()
    assert bus.reads == []
    assert bus.sleeps == []


def test_custom_address():
    bus = FakeBus([words(7)])
    sgp = Sgp40(I2CChannel(bus), 0x60)
    assert sgp.measure_raw_signal() == 7
    assert bus.writes[0][0] == 0x60