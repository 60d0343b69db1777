[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pulseox"
version = "0.1.0"
description = "MAX30105/MAX30102 optical sensor driver with heart-rate and SpO2 estimation"
requires-python = ">=3.10"
dependencies = []
keywords = ["max30105", "max30102", "pulse oximetry", "heart rate", "spo2", "i2c", "ppg"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pulseox"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
