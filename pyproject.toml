[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netshell"
version = "0.1.0"
description = "Network emulation building blocks: IPv4 addresses, sockets, a poller, a DNS proxy and AQM packet queues (drop-tail, drop-head, CoDel, PIE)"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = [
    "networking",
    "emulation",
    "aqm",
    "codel",
    "pie",
    "packet-queue",
    "dns-proxy",
    "poller",
]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["netshell"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
