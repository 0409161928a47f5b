[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pyano"
version = "0.1.0"
description = "Agents, sequential chains, tools and a local model manager for llama.cpp-style completion servers"
requires-python = ">=3.10"
keywords = [
    "llm",
    "agents",
    "llama.cpp",
    "model-manager",
    "tools",
]
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
    "Framework :: AsyncIO",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]
dependencies = [
    "httpx",
    "beautifulsoup4",
    "psutil",
    "starlette",
    "uvicorn",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
pyano-model-manager = "pyano.server:main"

[tool.hatch.build.targets.wheel]
packages = ["pyano"]

[tool.hatch.build.targets.sdist]
include = [
    "pyano",
    "tests",
    "README.md",
]

[tool.pytest.ini_options]
addopts = "-ra"
