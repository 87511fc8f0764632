"""Conftest.py (root-level).

We keep this in root so pytest's doctest plugin sees the fixtures below, and so
``tests.helpers`` imports resolve from the repository root. It also keeps
conftest.py out of the wheel.
"""

from __future__ import annotations

import typing as t

import pytest
from _pytest.doctest import DoctestItem

from cmakebuild.command import CapturedOutput, CommandResult, CommandSpec
from cmakebuild.pipeline import BuildPipeline


@pytest.fixture(autouse=True)
def add_doctest_fixtures(
    request: pytest.FixtureRequest,
    doctest_namespace: dict[str, t.Any],
) -> None:
    """Configure doctest fixtures for pytest-doctest."""
    if isinstance(request._pyfuncitem, DoctestItem):
        doctest_namespace["CapturedOutput"] = CapturedOutput
        doctest_namespace["CommandResult"] = CommandResult
        doctest_namespace["CommandSpec"] = CommandSpec
        doctest_namespace["BuildPipeline"] = BuildPipeline
        doctest_namespace["request"] = request
