[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "devtree"
version = "1.4.4"
description = "Device tree tooling helpers: source file positions, include search, flattened blob I/O and property formatting"
requires-python = ">=3.10"
dependencies = []
keywords = ["device tree", "dts", "dtb", "fdt", "source positions", "compiler"]
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
    "Topic :: Software Development :: Compilers",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["devtree"]

[tool.hatch.build.targets.sdist]
include = ["devtree", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
