[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zkemv"
version = "0.1.0"
description = "EMV card identity checks: certificate chain recovery, CDA signature verification and a nonce-based identity contract"
requires-python = ">=3.10"
dependencies = []
keywords = ["emv", "smart card", "rsa", "tlv", "apdu", "identity", "signature verification"]
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
    "Topic :: Security :: Cryptography",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["zkemv"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
