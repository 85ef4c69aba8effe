[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "intentnet"
version = "0.1.0"
description = "Building blocks for an intent broadcast network: topic monitoring, bidding agents, routing, processing pipelines and network status tracking."
requires-python = ">=3.10"
dependencies = []
keywords = ["intent", "broadcast", "pubsub", "p2p", "bidding", "routing", "pipeline"]
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
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["intentnet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
