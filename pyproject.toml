[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leptosbuild"
version = "0.1.0"
description = "Configuration resolution, cargo command lines, asset syncing and test runs for Leptos web projects"
requires-python = ">=3.10"
dependencies = [
    "python-dotenv",
]
keywords = ["leptos", "cargo", "wasm", "build", "web", "tailwind", "assets"]
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
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["leptosbuild"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
