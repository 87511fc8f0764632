"""Tests for cmakebuild.config."""

from __future__ import annotations

import dataclasses
import pathlib

import pytest

from cmakebuild.config import BuildConfig


def test_for_project_layout(tmp_path: pathlib.Path) -> None:
    """Sources and products follow the conventional project layout."""
    config = BuildConfig.for_project(tmp_path)

    assert config.source == tmp_path / "src" / "main" / "native"
    assert config.output == tmp_path / "target" / "native"
    assert config.target is None
    assert dict(config.variables) == {}
    assert dict(config.environment) == {}


def test_for_project_build_dir(tmp_path: pathlib.Path) -> None:
    """A separate build directory moves only the products."""
    config = BuildConfig.for_project(tmp_path, build_dir=tmp_path / "build")

    assert config.source == tmp_path / "src" / "main" / "native"
    assert config.output == tmp_path / "build" / "native"


def test_for_project_explicit_paths_win(tmp_path: pathlib.Path) -> None:
    """Explicit source and output override the layout."""
    config = BuildConfig.for_project(
        tmp_path,
        source="native-src",
        output=tmp_path / "out",
    )

    assert config.source == pathlib.Path("native-src")
    assert config.output == tmp_path / "out"


def test_config_is_frozen(tmp_path: pathlib.Path) -> None:
    """Neither fields nor mappings can change after construction."""
    variables = {"REQUIRE_ZSTD": "true"}
    config = BuildConfig(tmp_path / "src", tmp_path / "out", variables=variables)
    variables["REQUIRE_ZSTD"] = "false"

    assert config.variables["REQUIRE_ZSTD"] == "true"
    with pytest.raises(TypeError):
        config.variables["OTHER"] = "x"  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.target = "hdfs"  # type: ignore[misc]
