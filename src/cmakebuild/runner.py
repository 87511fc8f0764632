"""Run one external command while draining its output.

cmakebuild.runner
~~~~~~~~~~~~~~~~~

A child process that fills an unread pipe blocks forever, so every output
stream gets its own :class:`OutputReader` thread that starts right after the
process and reads to end-of-file while the main thread waits for the exit
code. Standard error is drained separately from standard output, so a burst
on one stream never stalls the other.
"""

from __future__ import annotations

import contextlib
import errno
import logging
import os
import subprocess
import threading
import time
import typing as t

from . import exc
from .command import CapturedOutput, CommandResult
from .otel import start_span

if t.TYPE_CHECKING:
    from collections.abc import Iterator

    from .command import CommandSpec

logger = logging.getLogger(__name__)


class OutputReader(threading.Thread):
    """Drain one pipe of a child process into :class:`CapturedOutput`.

    The thread is the only writer of :attr:`output` and seals it after the
    pipe reaches end-of-file and is closed.

    Parameters
    ----------
    stream : IO[str]
        Text-mode pipe returned by :class:`subprocess.Popen`.
    name : str
        Stream name, ``"stdout"`` or ``"stderr"``.
    """

    def __init__(self, stream: t.IO[str], name: str) -> None:
        super().__init__(name=f"cmakebuild-{name}", daemon=True)
        self.stream = stream
        self.output = CapturedOutput(name)
        self.error: Exception | None = None

    def run(self) -> None:
        """Append each line, without its newline, until end-of-file."""
        try:
            for line in self.stream:
                self.output.append(line[:-1] if line.endswith("\n") else line)
        except (OSError, ValueError) as e:
            self.error = e
            logger.debug("error draining %s", self.output.name, exc_info=True)
        finally:
            try:
                self.stream.close()
            finally:
                self.output.seal()


def _check_cwd(spec: CommandSpec) -> None:
    if not os.path.exists(spec.cwd):
        error: OSError = FileNotFoundError(
            errno.ENOENT,
            os.strerror(errno.ENOENT),
            spec.cwd,
        )
    elif not os.path.isdir(spec.cwd):
        error = NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), spec.cwd)
    else:
        return
    raise exc.LaunchError(spec.args, error) from error


def _terminate(process: subprocess.Popen[str]) -> None:
    if process.poll() is None:
        logger.debug("killing %s (pid %s)", process.args, process.pid)
        process.kill()
        process.wait()


@contextlib.contextmanager
def spawned(spec: CommandSpec) -> Iterator[subprocess.Popen[str]]:
    """Start *spec* and yield its process, killing it on exit if still alive.

    Raises
    ------
    :exc:`exc.LaunchError`
        The program could not be executed.
    """
    try:
        process = subprocess.Popen(
            list(spec.args),
            cwd=spec.cwd,
            env=spec.environ(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if spec.merge_stderr else subprocess.PIPE,
            text=True,
            errors="backslashreplace",
        )
    except OSError as e:
        logger.debug("Exception for %s", spec, exc_info=True)
        raise exc.LaunchError(spec.args, e) from e

    try:
        yield process
    finally:
        _terminate(process)


class SubprocessCommandRunner:
    """Run commands through :class:`subprocess.Popen`.

    Examples
    --------
    >>> import sys
    >>> from cmakebuild.command import CommandSpec
    >>> runner = SubprocessCommandRunner()
    >>> result = runner.run(
    ...     CommandSpec([sys.executable, "-c", "print('hello')"], cwd=".")
    ... )
    >>> result.returncode
    0
    >>> list(result.stdout)
    ['hello']
    >>> result.stdout.sealed
    True
    """

    def run(self, spec: CommandSpec) -> CommandResult:
        """Run *spec* to completion and return what it wrote.

        Parameters
        ----------
        spec : CommandSpec
            Command to run.

        Returns
        -------
        CommandResult
            Exit code and sealed output of each stream.

        Raises
        ------
        :exc:`exc.LaunchError`
            The working directory is missing or the program cannot start.
        :exc:`exc.ExecutionError`
            The wait or a reader join was interrupted, or a stream could not
            be read. The process is killed first and :attr:`ExecutionError.result`
            holds what was captured.
        """
        _check_cwd(spec)
        logger.debug("Running %s in %s", spec, spec.cwd)

        with start_span("cmakebuild.run", {"program": spec.program}) as span:
            started = time.perf_counter()
            with spawned(spec) as process:
                readers = self._attach_readers(process)
                try:
                    returncode = process.wait()
                except (KeyboardInterrupt, OSError) as e:
                    _terminate(process)
                    result = self._collect(spec, process, readers, started)
                    msg = f"Interrupted while waiting for {spec.program} process"
                    raise exc.ExecutionError(msg, result) from e
                result = self._collect(spec, process, readers, started, returncode)
            if span is not None:
                span.set_attribute("returncode", result.returncode)

        logger.debug(
            "%s exited with %d after %d ms",
            spec.program,
            result.returncode,
            result.duration_ms,
        )
        return result

    @staticmethod
    def _attach_readers(process: subprocess.Popen[str]) -> list[OutputReader]:
        readers = []
        for name, stream in (("stdout", process.stdout), ("stderr", process.stderr)):
            if stream is None:
                continue
            reader = OutputReader(stream, name)
            reader.start()
            readers.append(reader)
        return readers

    @staticmethod
    def _collect(
        spec: CommandSpec,
        process: subprocess.Popen[str],
        readers: list[OutputReader],
        started: float,
        returncode: int | None = None,
    ) -> CommandResult:
        """Join the readers and build the result.

        The process has exited (or was killed) so every pipe is at or near
        end-of-file.
        """

        def build() -> CommandResult:
            outputs = {reader.output.name: reader.output.snapshot() for reader in readers}
            code = returncode if returncode is not None else process.returncode
            return CommandResult(
                cmd=spec.args,
                returncode=code if code is not None else -1,
                stdout=outputs["stdout"],
                stderr=outputs.get("stderr"),
                duration=time.perf_counter() - started,
            )

        try:
            for reader in readers:
                reader.join()
        except KeyboardInterrupt as e:
            msg = f"Interrupted while joining output readers of {spec.program}"
            raise exc.ExecutionError(msg, build()) from e

        result = build()
        for reader in readers:
            if reader.error is not None:
                msg = f"Error reading {reader.output.name} of {spec.program}"
                raise exc.ExecutionError(msg, result) from reader.error
        return result
