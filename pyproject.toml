[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "idevtools"
version = "0.1.0"
description = "Message codecs and request/response helpers for iOS device services: DTX, usbmux, lockdown, image mounter, installation proxy and instruments"
requires-python = ">=3.10"
keywords = ["ios", "dtx", "usbmux", "lockdown", "instruments", "plist", "lz4"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]
dependencies = [
    "lz4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["idevtools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
