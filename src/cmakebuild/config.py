"""Parameters the calling build tool supplies for one native build."""

from __future__ import annotations

import dataclasses
import pathlib
import types
import typing as t

from .constants import (
    DEFAULT_BUILD_DIR,
    DEFAULT_OUTPUT_SUBDIR,
    DEFAULT_SOURCE_SUBDIR,
)

if t.TYPE_CHECKING:
    from ._internal.types import OptionalStrMapping, StrPath


@dataclasses.dataclass(frozen=True)
class BuildConfig:
    """Where to build, what to build, and with which settings.

    Attributes
    ----------
    source : pathlib.Path
        Checked-in native sources, holding the top-level ``CMakeLists.txt``.
    output : pathlib.Path
        Build products directory, created if missing.
    target : str, optional
        ``make`` target; the default target when ``None``.
    variables : Mapping[str, str | None]
        CMake cache variables, passed as ``-D<key>=<value>``.
    environment : Mapping[str, str | None]
        Extra environment for the configure step.

        Prefer cache variables: a generated build may re-run cmake on its own
        from an environment that no longer carries these values, while cache
        variables are saved in ``CMakeCache.txt``.

    Examples
    --------
    >>> config = BuildConfig.for_project("/work/hadoop-common", target="hadoop")
    >>> config.source.as_posix()
    '/work/hadoop-common/src/main/native'
    >>> config.output.as_posix()
    '/work/hadoop-common/target/native'
    """

    source: pathlib.Path
    output: pathlib.Path
    target: str | None = None
    variables: OptionalStrMapping = dataclasses.field(default_factory=dict)
    environment: OptionalStrMapping = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", pathlib.Path(self.source))
        object.__setattr__(self, "output", pathlib.Path(self.output))
        object.__setattr__(
            self,
            "variables",
            types.MappingProxyType(dict(self.variables or {})),
        )
        object.__setattr__(
            self,
            "environment",
            types.MappingProxyType(dict(self.environment or {})),
        )

    @classmethod
    def for_project(
        cls,
        basedir: StrPath,
        build_dir: StrPath | None = None,
        **kwargs: t.Any,
    ) -> BuildConfig:
        """Return a config using the conventional project layout.

        Sources default to ``<basedir>/src/main/native`` and products to
        ``<build_dir>/native``, with *build_dir* defaulting to
        ``<basedir>/target``. Explicit ``source=``/``output=`` win.
        """
        base = pathlib.Path(basedir)
        build = pathlib.Path(build_dir) if build_dir is not None else base / DEFAULT_BUILD_DIR
        kwargs.setdefault("source", base.joinpath(*DEFAULT_SOURCE_SUBDIR))
        kwargs.setdefault("output", build / DEFAULT_OUTPUT_SUBDIR)
        return cls(**kwargs)
