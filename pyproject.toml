[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookcatalog"
version = "0.1.0"
description = "A small WSGI JSON API for books, authors and their associations, backed by SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["books", "authors", "catalog", "sqlite", "wsgi", "rest", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bookcatalog = "bookcatalog.app:main"

[tool.hatch.build.targets.wheel]
packages = ["bookcatalog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
