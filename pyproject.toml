[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oskit"
version = "0.1.0"
description = "Operating-system building blocks: a simulated heap allocator, a compact printf, a threaded packet filter and a command-tree shell executor."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "allocator",
    "malloc",
    "printf",
    "firewall",
    "ring-buffer",
    "producer-consumer",
    "shell",
    "operating-systems",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
oskit-firewall = "oskit.firewall.cli:firewall_main"
oskit-serial = "oskit.firewall.cli:serial_main"

[tool.hatch.build.targets.wheel]
packages = ["oskit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
