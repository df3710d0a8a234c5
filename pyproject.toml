[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bayeux"
version = "2.3.0"
description = "Client for servers speaking the Bayeux protocol over HTTP long-polling, with replay and token-authentication extensions"
requires-python = ">=3.10"
dependencies = [
    "httpx",
]
keywords = ["bayeux", "cometd", "long-polling", "pubsub", "streaming", "replay"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
bayeux-listen = "bayeux.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bayeux"]

[tool.hatch.build.targets.sdist]
include = ["bayeux", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
