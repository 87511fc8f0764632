"""Command runner protocol for the build pipeline."""

from __future__ import annotations

import typing as t
from typing import Protocol

if t.TYPE_CHECKING:
    from cmakebuild.command import CommandResult, CommandSpec


class CommandRunner(Protocol):
    """Protocol for components that run one external command to completion.

    :class:`cmakebuild.runner.SubprocessCommandRunner` is the implementation
    used by default. Tests substitute scripted runners to drive the pipeline
    without spawning processes.

    Examples
    --------
    >>> from cmakebuild.runner import SubprocessCommandRunner
    >>> runner: CommandRunner = SubprocessCommandRunner()
    >>> assert callable(runner.run)
    """

    def run(self, spec: CommandSpec) -> CommandResult:
        """Run *spec* and return its finished result.

        Parameters
        ----------
        spec : CommandSpec
            Command, working directory and environment overlay.

        Returns
        -------
        CommandResult
            Exit code with sealed stdout/stderr lines.

        Raises
        ------
        cmakebuild.exc.LaunchError
            The program could not be started.
        cmakebuild.exc.ExecutionError
            Waiting or draining output was interrupted.
        """
        ...
