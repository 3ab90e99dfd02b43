[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rpcproxy"
version = "0.1.0"
description = "Building blocks of a blockchain JSON-RPC proxy: payloads, errors, configuration, transaction history, on-ramp URLs, signed name registration and profile storage"
requires-python = ">=3.12"
keywords = ["json-rpc", "blockchain", "proxy", "ethereum", "rpc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Typing :: Typed",
]
dependencies = [
    "pycryptodome",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rpcproxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py312"

[tool.mypy]
python_version = "3.12"
warn_unused_ignores = true
