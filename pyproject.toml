[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rustdocquery"
version = "0.1.0"
description = "Query adapter over rustdoc JSON crate data: items, impls, traits, attributes and importable paths"
requires-python = ">=3.10"
dependencies = []
keywords = ["rustdoc", "query", "adapter", "api", "attributes", "graph"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rustdocquery"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
