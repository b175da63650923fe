[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oraskit"
version = "1.0.0"
description = "Building blocks for working with OCI artifacts: descriptors, content graphs, referrers, manifests and blobs."
requires-python = ">=3.10"
keywords = ["oci", "registry", "artifacts", "manifest", "blob", "referrers", "digest"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Software Distribution",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
oraskit-version = "oraskit.version:main"

[tool.hatch.build.targets.wheel]
packages = ["oraskit"]

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
