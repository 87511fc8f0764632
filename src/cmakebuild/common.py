"""Helper methods for cmakebuild.

cmakebuild.common
~~~~~~~~~~~~~~~~~

"""

from __future__ import annotations

import os
import subprocess
import sys
import typing as t

from . import exc

if t.TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ._internal.types import OptionalStrMapping, StrPath


def validate_platform(platform: str | None = None) -> None:
    """Raise if the native build cannot run on this platform.

    Parameters
    ----------
    platform : str, optional
        Value to check in place of :data:`sys.platform`.

    Raises
    ------
    :exc:`exc.UnsupportedPlatform`
        Running on Windows.

    Examples
    --------
    >>> validate_platform("linux")
    >>> validate_platform("win32")
    Traceback (most recent call last):
    ...
    cmakebuild.exc.UnsupportedPlatform: CMake builds are not supported on the win32 platform
    """
    platform = sys.platform if platform is None else platform
    # TODO: support Windows, needs a generator other than Unix Makefiles
    if platform.lower().startswith("win"):
        raise exc.UnsupportedPlatform(platform)


def canonical_path(path: StrPath, label: str) -> str:
    """Return *path* with symlinks resolved, as a string.

    Raises
    ------
    :exc:`exc.ConfigurationError`
        The path cannot be resolved.
    """
    try:
        return os.path.realpath(os.fspath(path))
    except (OSError, ValueError) as e:
        msg = f"error getting canonical path for {label}"
        raise exc.ConfigurationError(msg) from e


def validate_source_params(source: StrPath, output: StrPath) -> None:
    """Raise if *source* lies inside *output*.

    A later clean of the output directory would otherwise delete the sources.

    This doesn't catch every bad case (hardlinks, bind mounts, a source that
    merely shares a textual prefix with the output), but it catches the
    common mistake of nesting the two.

    Parameters
    ----------
    source : str or PathLike
        Native source directory.
    output : str or PathLike
        Build products directory.

    Raises
    ------
    :exc:`exc.ConfigurationError`
        The canonical source path starts with the canonical output path.

    Examples
    --------
    >>> validate_source_params("/a/b", "/c")
    >>> validate_source_params("/a/b", "/a")
    Traceback (most recent call last):
    ...
    cmakebuild.exc.ConfigurationError: The source directory must not be inside the output directory (it would be destroyed by a clean of the output directory)
    """
    c_output = canonical_path(output, "output")
    c_source = canonical_path(source, "source")

    if c_source.startswith(c_output):
        msg = (
            "The source directory must not be inside the output directory "
            "(it would be destroyed by a clean of the output directory)"
        )
        raise exc.ConfigurationError(msg)


def available_execution_units() -> int:
    """Return the number of logical CPUs this process may run on.

    Honors CPU affinity where the platform exposes it.

    Examples
    --------
    >>> available_execution_units() >= 1
    True
    """
    if hasattr(os, "sched_getaffinity"):
        count = len(os.sched_getaffinity(0))
    else:
        count = os.cpu_count() or 0
    return max(count, 1)


def non_empty_items(mapping: OptionalStrMapping | None) -> dict[str, str]:
    """Return the entries of *mapping* whose value is neither ``None`` nor ``""``.

    Examples
    --------
    >>> non_empty_items({"A": "1", "B": "", "C": None})
    {'A': '1'}
    >>> non_empty_items(None)
    {}
    """
    if not mapping:
        return {}
    return {key: value for key, value in mapping.items() if value}


def env_to_string(env: Mapping[str, str | None] | None) -> str:
    """Format an environment overlay for the build log.

    Examples
    --------
    >>> print(env_to_string({"CC": "clang", "CFLAGS": None}))
    {
      CC = 'clang'
      CFLAGS = ''
    }
    >>> env_to_string(None)
    '{}'
    """
    if not env:
        return "{}"
    lines = [f"  {key} = '{value or ''}'" for key, value in env.items()]
    return "{\n" + "\n".join(lines) + "\n}"


def cmd_to_string(cmd: Sequence[str]) -> str:
    """Format argument tokens as a shell-like command line.

    Examples
    --------
    >>> cmd_to_string(["cmake", "/src", "-G", "Unix Makefiles"])
    'cmake /src -G "Unix Makefiles"'
    """
    return subprocess.list2cmdline(list(cmd))
