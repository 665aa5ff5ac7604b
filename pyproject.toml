[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sfmgraph"
version = "0.1.0"
description = "View-graph processing, two-view geometry and track filtering for global structure-from-motion"
requires-python = ">=3.10"
keywords = [
    "structure-from-motion",
    "view-graph",
    "epipolar-geometry",
    "computer-vision",
    "photogrammetry",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sfmgraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
