[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blesmp"
version = "0.1.0"
description = "Bluetooth LE Secure Connections building blocks: SMP crypto toolbox, L2CAP signalling and Security Manager handling, and an HCI UART transport"
requires-python = ">=3.10"
keywords = ["bluetooth", "ble", "smp", "l2cap", "hci", "pairing", "aes-cmac"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["blesmp"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
