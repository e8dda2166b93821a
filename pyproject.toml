[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "svlmd"
version = "0.1.0"
description = "Command-line tools for a Git-tracked Logseq knowledge database and its version changelog"
requires-python = ">=3.10"
dependencies = [
    "semver",
]
keywords = ["logseq", "changelog", "versioning", "knowledge-base", "markdown", "git"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: News/Diary",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
svlmd = "svlmd.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["svlmd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
