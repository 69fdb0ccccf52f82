[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "marvinbot"
version = "0.1.0"
description = "Voice command parsing, voice activity detection, FFT, servo gaits, sounds and animations for a small desktop robot"
requires-python = ">=3.10"
keywords = ["robot", "fft", "voice-activity-detection", "servo", "speech", "animation", "buzzer"]
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
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]
dependencies = [
    "requests",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["marvinbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
