[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xmitreader"
version = "0.1.0"
description = "Extract members of partitioned datasets from z/OS TSO XMIT (TRANSMIT) files"
requires-python = ">=3.10"
dependencies = []
keywords = ["xmit", "transmit", "iebcopy", "ebcdic", "mainframe", "pds", "pdse"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xmitreader = "xmitreader.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["xmitreader"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
