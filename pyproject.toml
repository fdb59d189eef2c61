[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vocmux"
version = "0.1.0"
description = "Drivers and logging helpers for multiplexed SHT3x/SGP40 temperature, humidity and VOC sensors"
requires-python = ">=3.10"
dependencies = []
keywords = ["i2c", "sht31", "sht3x", "sgp40", "voc", "humidity", "multiplexer", "tca9548a", "crc8"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Atmospheric Science",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vocmux"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
