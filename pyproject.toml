[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "treecontraction"
version = "0.1.0"
description = "Parallel tree contraction for evaluating arithmetic expression trees, with tree generators and a benchmark"
requires-python = ">=3.10"
dependencies = []
keywords = ["tree contraction", "expression tree", "parallel algorithms", "rake and compress", "benchmark"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
treecontraction-bench = "treecontraction.benchmark:main"

[tool.hatch.build.targets.wheel]
packages = ["treecontraction"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
