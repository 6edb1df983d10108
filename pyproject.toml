[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nodedisk"
version = "0.1.0"
description = "Block device inventory and resource management for storage nodes"
requires-python = ">=3.10"
keywords = ["block-device", "disk", "storage", "inventory", "sparse-file"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nodedisk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
