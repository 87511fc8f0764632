"""Constant variables for cmakebuild."""

from __future__ import annotations

#: Program run for the configure step
CMAKE_BIN = "cmake"

#: Program run for the compile step
MAKE_BIN = "make"

#: Build file generator handed to ``cmake -G``
DEFAULT_GENERATOR = "Unix Makefiles"

#: Number of times the compile step runs, unconditionally.
#:
#: Makefiles generated by cmake 2.6 can miss dependency edges on the first
#: pass (HADOOP-9215), so ``make`` is run twice. Drop to ``1`` once cmake 2.6
#: is no longer supported.
COMPILE_PASS_COUNT = 2

#: Verbosity assignment passed to ``make`` so full compiler lines are logged
MAKE_VERBOSE_FLAG = "VERBOSE=1"

#: Conventional location of native sources, relative to the project base
DEFAULT_SOURCE_SUBDIR = ("src", "main", "native")

#: Conventional build directory name, relative to the project base
DEFAULT_BUILD_DIR = "target"

#: Subdirectory of the build directory holding native build products
DEFAULT_OUTPUT_SUBDIR = "native"

#: Environment flag forcing OpenTelemetry export on (``1``) or off (``0``)
OTEL_ENV_FLAG = "CMAKEBUILD_OTEL"
