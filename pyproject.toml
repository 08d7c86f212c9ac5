[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codetect"
version = "0.1.0"
description = "Dialect-aware SQL generation, a small SQLite-backed database adapter and brute-force or pgvector-backed vector search"
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "sqlite", "postgres", "clickhouse", "dialect", "vector-search", "pgvector", "knn"]
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
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["codetect"]

[tool.pytest.ini_options]
addopts = "-ra"
