[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rbmarshal"
version = "0.1.0"
description = "Read and write data in Ruby's Marshal 4.8 binary format"
requires-python = ">=3.10"
dependencies = []
keywords = ["ruby", "marshal", "serialization", "deserialization", "binary"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: File Formats",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rbmarshal-dump-decoded = "rbmarshal.dump_decoded:main"
rbmarshal-dump-raw = "rbmarshal.dump_raw:main"

[tool.hatch.build.targets.wheel]
packages = ["rbmarshal"]

[tool.pytest.ini_options]
addopts = "-ra"
