"""cmakebuild, run cmake and make as one observable native build phase."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .command import CapturedOutput, CommandResult, CommandSpec
from .config import BuildConfig
from .pipeline import BuildPipeline, PipelineOutcome, PipelineState
from .runner import SubprocessCommandRunner

__all__ = (
    "BuildConfig",
    "BuildPipeline",
    "CapturedOutput",
    "CommandResult",
    "CommandSpec",
    "PipelineOutcome",
    "PipelineState",
    "SubprocessCommandRunner",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
)
