[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgrpc"
version = "0.1.0"
description = "Analysis helpers for generating typed client code from PostgreSQL schemas and functions"
requires-python = ">=3.11"
dependencies = []
keywords = [
    "postgresql",
    "code-generation",
    "plpgsql",
    "constraints",
    "sqlstate",
    "identifiers",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Software Development :: Code Generators",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pgrpc = "pgrpc.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pgrpc"]

[tool.hatch.build.targets.sdist]
include = ["pgrpc", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
