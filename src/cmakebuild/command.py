"""Commands and their captured results.

cmakebuild.command
~~~~~~~~~~~~~~~~~~

:class:`CommandSpec` describes one external invocation before it runs.
:class:`CapturedOutput` collects the lines of one output stream while the
process runs and is sealed once the stream is drained. :class:`CommandResult`
bundles both streams with the exit code after the process is gone.
"""

from __future__ import annotations

import dataclasses
import os
import types
import typing as t
from collections.abc import Sequence

from . import exc
from .common import cmd_to_string, non_empty_items

if t.TYPE_CHECKING:
    import sys
    from collections.abc import Iterable, Iterator, Mapping

    from ._internal.types import OptionalStrMapping

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


@dataclasses.dataclass(frozen=True)
class CommandSpec:
    """An external command, ready to launch.

    Attributes
    ----------
    args : tuple[str, ...]
        Argument tokens, program name first. Must not be empty.
    cwd : str
        Absolute working directory. It must exist when the command is run.
    env : Mapping[str, str | None]
        Environment overlay. Entries with a non-empty value override or add to
        the inherited environment; everything else is inherited unchanged.
    merge_stderr : bool
        Send standard error into the standard output pipe.

    Examples
    --------
    >>> spec = CommandSpec(["make", "-j4"], cwd="/tmp", env={"CC": "clang"})
    >>> spec.program
    'make'
    >>> spec.args
    ('make', '-j4')
    >>> str(spec)
    'make -j4'
    >>> spec.args = ("cmake",)
    Traceback (most recent call last):
    ...
    dataclasses.FrozenInstanceError: cannot assign to field 'args'
    """

    args: Sequence[str]
    cwd: str
    env: OptionalStrMapping = dataclasses.field(default_factory=dict)
    merge_stderr: bool = False

    def __post_init__(self) -> None:
        args = tuple(str(arg) for arg in self.args)
        if not args:
            raise exc.EmptyCommand
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "cwd", os.path.abspath(os.fspath(self.cwd)))
        object.__setattr__(self, "env", types.MappingProxyType(dict(self.env or {})))

    def __str__(self) -> str:
        return cmd_to_string(self.args)

    @property
    def program(self) -> str:
        """Program name, the first argument token."""
        return self.args[0]

    def environ(self) -> dict[str, str] | None:
        """Return the full child environment, or ``None`` to inherit as is.

        Examples
        --------
        >>> CommandSpec(["true"], cwd="/", env={"CC": ""}).environ() is None
        True
        >>> env = CommandSpec(["true"], cwd="/", env={"CC": "clang"}).environ()
        >>> env["CC"]
        'clang'
        """
        overlay = non_empty_items(self.env)
        if not overlay:
            return None
        environ = dict(os.environ)
        environ.update(overlay)
        return environ


class CapturedOutput(Sequence[str]):
    """Ordered lines written by a process to one stream.

    Only the reader draining the stream appends. Once the stream hits
    end-of-file the reader calls :meth:`seal` and the lines become read-only.

    Examples
    --------
    >>> out = CapturedOutput("stdout")
    >>> out.append("-- Configuring done")
    >>> out.seal()
    >>> list(out)
    ['-- Configuring done']
    >>> out.append("late")
    Traceback (most recent call last):
    ...
    cmakebuild.exc.OutputSealed: Captured stdout is sealed and can no longer change
    """

    def __init__(self, name: str, lines: Iterable[str] = ()) -> None:
        self.name = name
        self._lines: list[str] = list(lines)
        self._sealed = False

    @classmethod
    def sealed_from(cls, name: str, lines: Iterable[str]) -> Self:
        """Return already-sealed output holding *lines*."""
        output = cls(name, lines)
        output.seal()
        return output

    @property
    def sealed(self) -> bool:
        """Whether the lines are final."""
        return self._sealed

    def append(self, line: str) -> None:
        """Add one line.

        Raises
        ------
        :exc:`exc.OutputSealed`
            The output was already sealed.
        """
        if self._sealed:
            raise exc.OutputSealed(self.name)
        self._lines.append(line)

    def seal(self) -> None:
        """Freeze the lines. Calling it again is harmless."""
        self._sealed = True

    def snapshot(self) -> CapturedOutput:
        """Return a sealed copy of the lines captured so far.

        Used when a reader could not be joined and may still be appending.
        """
        if self._sealed:
            return self
        return self.sealed_from(self.name, self._lines[:])

    @t.overload
    def __getitem__(self, index: int) -> str: ...

    @t.overload
    def __getitem__(self, index: slice) -> list[str]: ...

    def __getitem__(self, index: int | slice) -> str | list[str]:
        return self._lines[index]

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CapturedOutput):
            return self.name == other.name and self._lines == other._lines
        if isinstance(other, list):
            return self._lines == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "open"
        return f"CapturedOutput({self.name!r}, lines={len(self._lines)}, {state})"


@dataclasses.dataclass(frozen=True)
class CommandResult:
    """Record of one finished process.

    Attributes
    ----------
    cmd : tuple[str, ...]
        Argument tokens that were executed.
    returncode : int
        Exit code; ``0`` is success. Negative values mean the process was
        killed by that signal.
    stdout : CapturedOutput
        Standard output lines, including standard error when merged.
    stderr : CapturedOutput, optional
        Standard error lines, ``None`` when merged into *stdout*.
    duration : float
        Wall-clock seconds from launch to the last reader finishing.
    """

    cmd: tuple[str, ...]
    returncode: int
    stdout: CapturedOutput
    stderr: CapturedOutput | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the process exited with ``0``."""
        return self.returncode == 0

    @property
    def duration_ms(self) -> int:
        """:attr:`duration` in whole milliseconds."""
        return int(self.duration * 1000)

    def streams(self) -> Mapping[str, CapturedOutput]:
        """Captured streams by name, *stdout* first."""
        streams = {"stdout": self.stdout}
        if self.stderr is not None:
            streams["stderr"] = self.stderr
        return streams
