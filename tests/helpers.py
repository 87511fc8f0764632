"""Test helpers: scripted command runners and fake build tools."""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import typing as t

from cmakebuild.command import CapturedOutput, CommandResult

if t.TYPE_CHECKING:
    from collections.abc import Iterable

    import pytest

    from cmakebuild.command import CommandSpec


def make_result(
    returncode: int = 0,
    stdout: Iterable[str] = (),
    stderr: Iterable[str] | None = None,
    cmd: Iterable[str] = ("tool",),
) -> CommandResult:
    """Return a finished :class:`CommandResult` with sealed output."""
    return CommandResult(
        cmd=tuple(cmd),
        returncode=returncode,
        stdout=CapturedOutput.sealed_from("stdout", stdout),
        stderr=None if stderr is None else CapturedOutput.sealed_from("stderr", stderr),
    )


class ScriptedRunner:
    """Command runner replaying queued results (or exceptions) in order.

    Every spec handed to :meth:`run` is recorded in :attr:`specs`. Running
    more commands than were scripted fails the test with :exc:`IndexError`.
    """

    def __init__(self, *outcomes: CommandResult | Exception) -> None:
        self.outcomes = list(outcomes)
        self.specs: list[CommandSpec] = []

    def run(self, spec: CommandSpec) -> CommandResult:
        self.specs.append(spec)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def programs(self) -> list[str]:
        return [spec.program for spec in self.specs]


@dataclasses.dataclass
class FakeTools:
    """Fake ``cmake`` and ``make`` programs installed first on ``PATH``."""

    bin_dir: pathlib.Path
    log: pathlib.Path

    def invocations(self) -> list[str]:
        """Return one ``"<tool> <args>"`` line per fake tool run."""
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()


def messages_logged(caplog: pytest.LogCaptureFixture, level: int) -> list[str]:
    """Return captured messages logged at exactly *level*, in order."""
    return [r.getMessage() for r in caplog.records if r.levelno == level]


def warnings_logged(caplog: pytest.LogCaptureFixture) -> list[str]:
    """Return captured messages logged at warning level."""
    return messages_logged(caplog, logging.WARNING)


def infos_logged(caplog: pytest.LogCaptureFixture) -> list[str]:
    """Return captured messages logged at info level."""
    return messages_logged(caplog, logging.INFO)
