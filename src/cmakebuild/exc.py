"""Provide exceptions used by cmakebuild.

cmakebuild.exc
~~~~~~~~~~~~~~

Every error raised by the runner or the pipeline inherits from
:exc:`CMakeBuildException`. :meth:`cmakebuild.pipeline.BuildPipeline.execute`
catches this hierarchy and reports it on the returned outcome.
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from collections.abc import Sequence

    from cmakebuild.command import CommandResult


class CMakeBuildException(Exception):
    """Base exception for all cmakebuild errors."""


class ConfigurationError(CMakeBuildException):
    """Raised when the source and output directories cannot be used together."""


class UnsupportedPlatform(ConfigurationError):
    """Raised on platforms the native build does not support (Windows)."""

    def __init__(self, platform: str, *args: object) -> None:
        super().__init__(
            f"CMake builds are not supported on the {platform} platform",
        )
        self.platform = platform


class EmptyCommand(CMakeBuildException, ValueError):
    """Raised if a command is built without any argument tokens."""

    def __init__(self, *args: object) -> None:
        super().__init__("Command requires at least a program name")


class OutputSealed(CMakeBuildException, RuntimeError):
    """Raised when appending to captured output that was already finalized."""

    def __init__(self, name: str, *args: object) -> None:
        super().__init__(f"Captured {name} is sealed and can no longer change")


class LaunchError(CMakeBuildException):
    """Raised when an executable cannot be started.

    The underlying :exc:`OSError` is kept on :attr:`error` and chained as the
    exception's cause.
    """

    def __init__(self, cmd: Sequence[str], error: OSError, *args: object) -> None:
        program = cmd[0] if cmd else "<empty>"
        super().__init__(f"Error executing {program}: {error}")
        self.cmd = list(cmd)
        self.error = error


class ExecutionError(CMakeBuildException):
    """Raised if waiting on a process or joining its readers is interrupted.

    The process is terminated before this is raised. :attr:`result` holds the
    best-effort record of what was captured.
    """

    def __init__(
        self,
        message: str,
        result: CommandResult | None = None,
        *args: object,
    ) -> None:
        super().__init__(message)
        self.result = result


class ExternalToolFailure(CMakeBuildException):
    """Raised when cmake or make exits with a non-zero code."""

    def __init__(self, tool: str, result: CommandResult, *args: object) -> None:
        super().__init__(f"{tool} failed with error code {result.returncode}")
        self.tool = tool
        self.result = result

    @property
    def returncode(self) -> int:
        """Exit code of the failing tool."""
        return self.result.returncode
