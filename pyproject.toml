[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wyog"
version = "0.0.1"
description = "A small implementation of a subset of git commands"
requires-python = ">=3.10"
dependencies = []
keywords = ["git", "version-control", "vcs", "objects", "index"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wyog = "wyog.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["wyog"]

[tool.pytest.ini_options]
addopts = "-ra"
