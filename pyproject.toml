[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "ebmlgen"
version = "0.1.0"
description = "Generate byte-at-a-time EBML stream parsers in C from an XML element schema"
requires-python = ">=3.10"
dependencies = []
keywords = ["ebml", "matroska", "schema", "code generation", "parser"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Programming Language :: C",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ebmlgen = "ebmlgen.codegen:main"
ebmlgen-parse = "ebmlgen.parser:main"

[tool.setuptools.packages.find]
include = ["ebmlgen*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
