[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hostarq"
version = "0.1.0"
description = "Building blocks of a host-side ARQ transport: sequence windows, FIFOs, locks, daemon control and stream helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["arq", "sliding-window", "udp", "fpga", "reliable-transport"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hostarq"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
