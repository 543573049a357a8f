[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sockettest"
version = "1.0.0"
description = "Test TCP, TLS and UDP connections by hand: listen, connect, send text, hex or files, and log what comes back."
requires-python = ">=3.10"
dependencies = []
keywords = ["socket", "tcp", "udp", "tls", "ssl", "network", "testing", "debugging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sockettest = "sockettest.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["sockettest"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
