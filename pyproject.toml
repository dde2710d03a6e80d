[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "conckit"
version = "0.1.0"
description = "Concurrency building blocks: a segmented concurrent map, copy-on-write arrays, a rate-limited load generator and small chatbot, pipe, signal and socket tools."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "concurrency",
    "concurrent map",
    "copy-on-write",
    "load generator",
    "threading",
    "chatbot",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
conckit-talk = "conckit.talk:main"
conckit-cube-root = "conckit.cube_root:main"
conckit-pipes = "conckit.pipes:main"
conckit-signals = "conckit.signals:main"

[tool.hatch.build.targets.wheel]
packages = ["conckit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
