# vocmux

Drivers and logging helpers for up to eight SHT3x (temperature and humidity)
and SGP40 (VOC) sensor pairs behind a TCA9548A-style eight-port I2C
multiplexer.

The package contains:

- `vocmux.common`: big-endian conversions (`bytes_to_uint16`, `uint16_to_bytes`,
  `bytes_to_float`, `float_to_bytes` and related functions) and the error types
  `SensirionError`, `CrcError`, `I2CBusError` and `ByteCountError`.
- `vocmux.i2c`: the Sensirion CRC-8 checksum (`generate_crc`, `check_crc`),
  frame building (`fill_cmd_send_buf`, `FrameBuilder`), CRC stripping
  (`strip_crc`), and `I2CChannel`, which does CRC-checked word transfers over
  a bus object.
- `vocmux.sht3x_defs`: the SHT3x `Command`, `Repeatability` and `Mps` enums,
  the tick conversions `signal_temperature` and `signal_humidity`, and command
  lookup (`single_shot_command`, `periodic_command`, `command_delay_usec`).
- `vocmux.sht3x`: the `Sht3x` driver. It does single-shot, periodic and ART
  measurement, and handles the status register, the heater and soft reset.
- `vocmux.sgp40`: the `Sgp40` driver. It reads the raw VOC signal, runs the
  self test, reads the serial number and turns the heater off.
- `vocmux.voc`: the `Multiplexer` class, config file reading, per-port
  accumulation and averaging, and CSV row formatting.

## Installation

```
pip install .
```

## Providing a bus

`I2CChannel` talks to any object that has these three methods (see the
`I2CBus` protocol in `vocmux.i2c`):

- `read(address, count) -> bytes`
- `write(address, data) -> None`
- `sleep_usec(useconds) -> None`

`write` should raise a `SensirionError` subclass, such as `I2CBusError`, when a
device does not acknowledge. `Multiplexer.detect()` relies on this to find out
which addresses answer.

## Using the drivers

```python
from vocmux.i2c import I2CChannel
from vocmux.sht3x import Sht3x
from vocmux.sht3x_defs import Repeatability, signal_temperature
from vocmux.sgp40 import Sgp40

channel = I2CChannel(bus)  # bus: your adapter object, as described above
sht = Sht3x(channel, 0x44)
t_ticks, h_ticks = sht.measure_single_shot(Repeatability.HIGH, False)
print(signal_temperature(t_ticks))
print(Sgp40(channel, 0x59).measure_raw_signal(h_ticks, t_ticks))
```

If a received word fails its checksum, the call raises `CrcError`. A length
that is not a whole number of words raises `ByteCountError`.

## Sampling and logging

```python
from vocmux.voc import (
    Config, Multiplexer, TCA_ADDR_70, csv_header, finalize_averages,
    get_timestamp, make_accumulators, read_config, sample_all_ports,
)

try:
    config = read_config("config.txt")
except OSError:
    config = Config()

mux = Multiplexer(channel, TCA_ADDR_70)
accumulators = make_accumulators()
with open("log.csv", "a") as log:
    log.write(csv_header() + "\n")
    for _ in range(config.oversample_count):
        sample_all_ports(mux, sht, sgp, accumulators, config.humidity_offset)
    finalize_averages(log, accumulators, config.oversample_count, get_timestamp())
```

`sample_all_ports` selects each of the eight ports in turn. If
`Multiplexer.detect()` finds a device on a port, it takes one reading there
with `single_measure`. Each reading is added to that port's
`SensorAccumulator`, and a line is printed to `out` (standard output by
default). The function returns the `(port, Measurement)` pairs it took.

`single_measure` adds the humidity offset (in %RH) to the SHT3x humidity
ticks. It then passes the corrected ticks to the SGP40 for compensation.
`measure_oversampled` averages readings of a single sensor pair, taken one
second apart.

The CSV header is:

```
Timestamp,T0,H0,VOC0,T1,H1,VOC1,...,T7,H7,VOC7
```

Each row holds the per-port averages: temperature and humidity with two
decimals, and VOC as an integer. A port whose sample count does not equal the
oversample count is written as `NaN,NaN,NaN`. `get_timestamp` gives local
time in the form `YYYY-MM-DDTHH:MM:SS`.

## Configuration file

`read_config(path)` reads `key = value` lines. Lines that start with `#` are
ignored. If the file cannot be opened, it raises `OSError`.

```
oversample_count = 5
humidity_offset = 0
```

A missing key keeps its default (5 and 0). A count that is not positive falls
back to 5. A negative offset falls back to 0.

## What this package does not do

This package does not open a Linux I2C device and has no command-line program
or endless logging loop. You supply the bus object, pick the log file name,
and run the sampling loop yourself, as in the examples above.