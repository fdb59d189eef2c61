"""SHT3x and SGP40 sensor drivers, Sensirion I2C framing, and multiplexed sampling and CSV logging helpers."""

__version__ = "0.1.0"