[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pkmsync"
version = "0.1.0"
description = "Turn e-mail messages and threads into Markdown notes for Obsidian and Logseq."
requires-python = ">=3.10"
dependencies = []
keywords = ["email", "gmail", "obsidian", "logseq", "notes", "pkm", "markdown"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Email",
    "Topic :: Text Processing :: Markup :: Markdown",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pkmsync"]

[tool.pytest.ini_options]
addopts = "-ra"
