[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sqlforge"
version = "0.1.0"
description = "Database-first model code generator with column-set inference, naming aliases and Jinja2 template output"
requires-python = ">=3.10"
dependencies = [
    "jinja2",
]
keywords = [
    "orm",
    "code-generation",
    "sql",
    "database",
    "templates",
    "schema",
    "jinja2",
]
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
    "Topic :: Database",
    "Topic :: Software Development :: Code Generators",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sqlforge"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
