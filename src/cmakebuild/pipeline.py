"""Configure with cmake, then compile with make.

cmakebuild.pipeline
~~~~~~~~~~~~~~~~~~~

:class:`BuildPipeline` runs the fixed sequence

``VALIDATING -> CONFIGURING -> COMPILING (pass 1..n) -> DONE``

and drops to ``FAILED`` at the first step that goes wrong. Output of a
successful configure step stays quiet; output of a failing step is replayed
to the build log at warning level. Compiler diagnostics on standard error are
always replayed, since warnings matter even when the build passes.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import os
import pathlib
import time
import typing as t

from . import exc
from .command import CommandSpec
from .common import (
    available_execution_units,
    env_to_string,
    non_empty_items,
    validate_platform,
    validate_source_params,
)
from .constants import (
    CMAKE_BIN,
    COMPILE_PASS_COUNT,
    DEFAULT_GENERATOR,
    MAKE_BIN,
    MAKE_VERBOSE_FLAG,
)
from .otel import start_span
from .runner import SubprocessCommandRunner

if t.TYPE_CHECKING:
    from collections.abc import Iterable

    from ._internal.command_runner import CommandRunner
    from ._internal.types import OptionalStrMapping, StrPath
    from .command import CommandResult
    from .config import BuildConfig

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    """Where a :class:`BuildPipeline` run is."""

    Validating = "VALIDATING"
    Configuring = "CONFIGURING"
    Compiling = "COMPILING"
    Done = "DONE"
    Failed = "FAILED"


@dataclasses.dataclass(frozen=True)
class PipelineOutcome:
    """Result of :meth:`BuildPipeline.execute`.

    Attributes
    ----------
    success : bool
        Whether every step passed.
    state : PipelineState
        Terminal state, :attr:`PipelineState.Done` or :attr:`PipelineState.Failed`.
    elapsed : float
        Wall-clock seconds for the whole run.
    results : tuple[CommandResult, ...]
        Result of every process that ran, in order.
    failed_step : str, optional
        ``"validate"``, ``"configure"`` or ``"compile pass N"``.
    failed_result : CommandResult, optional
        Result of the step that failed, when a process ran for it.
    error : CMakeBuildException, optional
        Exception that ended the run.
    """

    success: bool
    state: PipelineState
    elapsed: float
    results: tuple[CommandResult, ...] = ()
    failed_step: str | None = None
    failed_result: CommandResult | None = None
    error: exc.CMakeBuildException | None = None

    @property
    def elapsed_ms(self) -> int:
        """:attr:`elapsed` in whole milliseconds."""
        return int(self.elapsed * 1000)

    def raise_for_status(self) -> None:
        """Raise :attr:`error` if the run failed."""
        if self.error is not None:
            raise self.error


def build_configure_spec(
    source: StrPath,
    output: StrPath,
    variables: OptionalStrMapping | None = None,
    environment: OptionalStrMapping | None = None,
    *,
    generator: str = DEFAULT_GENERATOR,
    cmake: str = CMAKE_BIN,
) -> CommandSpec:
    """Return the ``cmake`` invocation for *source*, run inside *output*.

    Variables with an empty value are left out. Standard error is merged into
    standard output, since cmake interleaves errors with its progress lines.

    Examples
    --------
    >>> spec = build_configure_spec(
    ...     "/src", "/out", {"REQUIRE_ZSTD": "true", "CUSTOM_ZSTD": ""}
    ... )
    >>> spec.args
    ('cmake', '/src', '-DREQUIRE_ZSTD=true', '-G', 'Unix Makefiles')
    >>> spec.merge_stderr
    True
    """
    args = [cmake, os.path.abspath(os.fspath(source))]
    args.extend(f"-D{key}={value}" for key, value in non_empty_items(variables).items())
    args.extend(["-G", generator])
    return CommandSpec(
        args,
        cwd=os.fspath(output),
        env=environment or {},
        merge_stderr=True,
    )


def build_compile_spec(
    output: StrPath,
    parallelism: int,
    target: str | None = None,
    *,
    make: str = MAKE_BIN,
) -> CommandSpec:
    """Return the ``make`` invocation run inside *output*.

    *target* is appended unless it is ``None``; an empty string is passed
    through as is.

    Examples
    --------
    >>> build_compile_spec("/out", 8).args
    ('make', '-j8', 'VERBOSE=1')
    >>> build_compile_spec("/out", 2, "hdfs").args
    ('make', '-j2', 'VERBOSE=1', 'hdfs')
    """
    args = [make, f"-j{parallelism}", MAKE_VERBOSE_FLAG]
    if target is not None:
        args.append(target)
    return CommandSpec(args, cwd=os.fspath(output))


class BuildPipeline:
    """Run the configure step and the compile passes for one native build.

    Parameters
    ----------
    runner : CommandRunner, optional
        Runs each command; :class:`SubprocessCommandRunner` by default.
    log : logging.Logger, optional
        The calling build tool's log. Progress goes out at info, replayed
        tool output at warning and failures at error.
    parallelism : int, optional
        ``make -j`` value. Defaults to the execution units available when the
        pipeline is constructed.
    generator : str
        ``cmake -G`` build file generator.
    compile_passes : int
        How many times ``make`` runs. See
        :data:`cmakebuild.constants.COMPILE_PASS_COUNT`.
    cmake, make : str
        Programs for the two steps.

    Examples
    --------
    >>> pipeline = BuildPipeline(parallelism=4)
    >>> pipeline.compile_passes
    2
    >>> pipeline.state
    <PipelineState.Validating: 'VALIDATING'>
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        log: logging.Logger | None = None,
        *,
        parallelism: int | None = None,
        generator: str = DEFAULT_GENERATOR,
        compile_passes: int = COMPILE_PASS_COUNT,
        cmake: str = CMAKE_BIN,
        make: str = MAKE_BIN,
    ) -> None:
        if compile_passes < 1:
            msg = f"compile_passes must be at least 1, got {compile_passes}"
            raise ValueError(msg)
        if parallelism is not None and parallelism < 1:
            msg = f"parallelism must be at least 1, got {parallelism}"
            raise ValueError(msg)
        self.runner: CommandRunner = (
            runner if runner is not None else SubprocessCommandRunner()
        )
        self.log = log if log is not None else logger
        self.parallelism = (
            parallelism if parallelism is not None else available_execution_units()
        )
        self.generator = generator
        self.compile_passes = compile_passes
        self.cmake = cmake
        self.make = make
        self.state = PipelineState.Validating

    def _transition(self, state: PipelineState, detail: str = "") -> None:
        logger.debug("pipeline %s -> %s %s", self.state.name, state.name, detail)
        self.state = state

    def validate(self, source: StrPath, output: StrPath) -> None:
        """Check the platform and that *source* is not inside *output*.

        Nothing is created on disk.

        Raises
        ------
        :exc:`exc.ConfigurationError`
            Unsupported platform or nested directories.
        """
        validate_platform()
        validate_source_params(source, output)

    def run(self, config: BuildConfig) -> PipelineOutcome:
        """Execute the pipeline for a :class:`~cmakebuild.config.BuildConfig`."""
        return self.execute(
            config.source,
            config.output,
            variables=config.variables,
            environment=config.environment,
            target=config.target,
        )

    def execute(
        self,
        source: StrPath,
        output: StrPath,
        *,
        variables: OptionalStrMapping | None = None,
        environment: OptionalStrMapping | None = None,
        target: str | None = None,
    ) -> PipelineOutcome:
        """Configure *source* into *output*, then compile it.

        Errors from the :mod:`cmakebuild.exc` hierarchy do not propagate; they
        end the run and are reported on the returned outcome. Use
        :meth:`PipelineOutcome.raise_for_status` to turn a failure into an
        exception.

        Parameters
        ----------
        source : str or PathLike
            Native source directory.
        output : str or PathLike
            Build products directory, created if missing.
        variables : Mapping[str, str | None], optional
            CMake cache variables.
        environment : Mapping[str, str | None], optional
            Extra environment for the configure step.
        target : str, optional
            ``make`` target.

        Returns
        -------
        PipelineOutcome
        """
        started = time.perf_counter()
        results: list[CommandResult] = []
        step = "validate"
        self.state = PipelineState.Validating

        with start_span("cmakebuild.pipeline", {"target": target or ""}):
            try:
                self.validate(source, output)
                self._ensure_output(output)

                step = "configure"
                self._transition(PipelineState.Configuring)
                self._configure(source, output, variables, environment, results)

                compile_spec = build_compile_spec(
                    output,
                    self.parallelism,
                    target,
                    make=self.make,
                )
                for number in range(1, self.compile_passes + 1):
                    step = f"compile pass {number}"
                    self._transition(PipelineState.Compiling, step)
                    self._compile(compile_spec, number, results)
            except exc.CMakeBuildException as e:
                self._transition(PipelineState.Failed, step)
                self.log.error("%s", e)
                return PipelineOutcome(
                    success=False,
                    state=PipelineState.Failed,
                    elapsed=time.perf_counter() - started,
                    results=tuple(results),
                    failed_step=step,
                    failed_result=getattr(e, "result", None),
                    error=e,
                )

        self._transition(PipelineState.Done)
        outcome = PipelineOutcome(
            success=True,
            state=PipelineState.Done,
            elapsed=time.perf_counter() - started,
            results=tuple(results),
        )
        self.log.info(
            "cmake compilation finished successfully in %d millisecond(s).",
            outcome.elapsed_ms,
        )
        return outcome

    def _ensure_output(self, output: StrPath) -> None:
        path = pathlib.Path(output)
        if path.is_dir():
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"could not create output directory '{path}'"
            raise exc.ConfigurationError(msg) from e
        self.log.info("mkdirs '%s'", path)

    def _configure(
        self,
        source: StrPath,
        output: StrPath,
        variables: OptionalStrMapping | None,
        environment: OptionalStrMapping | None,
        results: list[CommandResult],
    ) -> None:
        spec = build_configure_spec(
            source,
            output,
            variables,
            environment,
            generator=self.generator,
            cmake=self.cmake,
        )
        self.log.info("Running %s", spec)
        self.log.info("with extra environment variables %s", env_to_string(environment))

        result = self._run(spec, results)
        if not result.ok:
            self._replay(result.stdout)
            raise exc.ExternalToolFailure("CMake", result)
        self.log.info("cmake finished in %d millisecond(s)", result.duration_ms)

    def _compile(
        self,
        spec: CommandSpec,
        number: int,
        results: list[CommandResult],
    ) -> None:
        self.log.info("Running %s (pass %d of %d)", spec, number, self.compile_passes)

        result = self._run(spec, results)
        if not result.ok:
            self._replay(result.stdout)
        if result.stderr is not None:
            self._replay(result.stderr)
        if not result.ok:
            raise exc.ExternalToolFailure("make", result)
        self.log.info("make pass %d finished in %d millisecond(s)", number, result.duration_ms)

    def _run(self, spec: CommandSpec, results: list[CommandResult]) -> CommandResult:
        try:
            result = self.runner.run(spec)
        except exc.ExecutionError as e:
            if e.result is not None:
                results.append(e.result)
                for lines in e.result.streams().values():
                    self._replay(lines)
            raise
        results.append(result)
        return result

    def _replay(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.log.warning("%s", line)
