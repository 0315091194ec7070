[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "c33"
version = "0.1.0"
description = "A small compiler for a toy language that emits QBE SSA, assembly and native binaries"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "qbe", "ssa", "toy-language", "codegen"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
c33 = "c33.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["c33"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
