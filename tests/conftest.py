"""Fixtures for cmakebuild tests."""

from __future__ import annotations

import os
import pathlib
import stat
import sys
import textwrap

import pytest

from tests.helpers import FakeTools

FAKE_CMAKE = """\
import os
import sys

with open(os.environ["FAKE_TOOL_LOG"], "a") as fp:
    fp.write("cmake " + " ".join(sys.argv[1:]) + "\\n")
print("-- The C compiler identification is GNU")
print("CMake Warning: manually-specified variable not used", file=sys.stderr)
print("-- CC=" + os.environ.get("CC", "<unset>"))
print("-- cwd=" + os.getcwd())
sys.exit(int(os.environ.get("FAKE_CMAKE_EXIT", "0")))
"""

FAKE_MAKE = """\
import os
import sys

log = os.environ["FAKE_TOOL_LOG"]
with open(log, "a") as fp:
    fp.write("make " + " ".join(sys.argv[1:]) + "\\n")
with open(log) as fp:
    passes = sum(1 for line in fp if line.startswith("make "))
print("[100%%] Built target native (pass %d)" % passes)
print("-- CC=" + os.environ.get("CC", "<unset>"))
print("warning: implicit declaration of function (pass %d)" % passes, file=sys.stderr)
fail_pass = os.environ.get("FAKE_MAKE_FAIL_PASS")
if fail_pass is not None and int(fail_pass) == passes:
    print("make: *** [all] Error 2", file=sys.stderr)
    sys.exit(2)
"""


def _write_script(path: pathlib.Path, body: str) -> None:
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep span export and fake-tool switches out of the tests' way."""
    for key in list(os.environ):
        if key.startswith(("OTEL_", "CMAKEBUILD_", "FAKE_")):
            monkeypatch.delenv(key)
    monkeypatch.delenv("CC", raising=False)


@pytest.fixture
def fake_tools(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> FakeTools:
    """Install fake ``cmake``/``make`` scripts and put them on ``PATH``."""
    bin_dir = tmp_path_factory.mktemp("bin")
    _write_script(bin_dir / "cmake", FAKE_CMAKE)
    _write_script(bin_dir / "make", FAKE_MAKE)
    log = bin_dir / "invocations.log"
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.setenv("FAKE_TOOL_LOG", str(log))
    return FakeTools(bin_dir=bin_dir, log=log)


@pytest.fixture
def source_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Native source tree with a placeholder ``CMakeLists.txt``."""
    source = tmp_path / "project" / "src" / "main" / "native"
    source.mkdir(parents=True)
    (source / "CMakeLists.txt").write_text("project(native C)\n")
    return source


@pytest.fixture
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Not-yet-created build products directory."""
    return tmp_path / "project" / "target" / "native"
