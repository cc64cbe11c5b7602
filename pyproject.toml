[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gotenberg"
version = "8.0.0"
description = "Module system, typed flags and process supervision for long-running services"
requires-python = ">=3.10"
keywords = ["modules", "plugins", "flags", "process-supervisor", "subprocess", "pdf"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "regex",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gotenberg = "gotenberg.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gotenberg"]

[tool.pytest.ini_options]
addopts = "-ra"
