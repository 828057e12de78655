[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rmiiudp"
version = "0.1.0"
description = "Clock-cycle model of an RMII Ethernet receiver and transmitter for UDP over IPv4"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ethernet",
    "rmii",
    "udp",
    "ipv4",
    "crc32",
    "simulation",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rmiiudp"]

[tool.hatch.build.targets.sdist]
include = ["rmiiudp", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
files = ["rmiiudp"]
