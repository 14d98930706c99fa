[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dolly"
version = "0.1.0"
description = "Parse a small subset of Puppet manifests and build an acyclic execution plan of resources."
requires-python = ">=3.10"
dependencies = []
keywords = ["puppet", "manifest", "configuration-management", "dependency-graph", "topological-sort"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dolly = "dolly.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dolly"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
