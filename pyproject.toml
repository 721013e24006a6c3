[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jx"
version = "0.1.0"
description = "Streaming JSON decoder with precise errors, iterators and raw value capture"
requires-python = ">=3.10"
dependencies = []
keywords = ["json", "decoder", "streaming", "parser", "iterator"]
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
    "Topic :: File Formats :: JSON",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["jx"]

[tool.pytest.ini_options]
addopts = "-ra"
