[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chwire"
version = "0.1.0"
description = "ClickHouse native wire format: column codecs, LZ4 block compression and CityHash 1.0.2"
requires-python = ">=3.10"
dependencies = []
keywords = ["clickhouse", "columnar", "lz4", "cityhash", "binary-protocol"]
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
    "Topic :: Database :: Front-Ends",
    "Topic :: System :: Archiving :: Compression",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["chwire"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
