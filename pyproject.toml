[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "antigen"
version = "0.0.1"
description = "Read Rust source: tokenize it, find items and their outer attributes, and parse the arguments of antigen, presents and immune attributes."
requires-python = ">=3.10"
dependencies = []
keywords = ["immunity", "failure-class", "lint", "rust", "attributes", "tokenizer", "static-analysis"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["antigen"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
