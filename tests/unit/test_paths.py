"""Unit tests for output path derivation."""

from __future__ import annotations

from pathlib import Path

import pytest

from printpal.models import Format
from printpal.paths import infer_format, resolve_output_path


@pytest.mark.parametrize(
    "output,fmt,expected",
    [
        ("model", "glb", "model.glb"),
        ("model.obj", "glb", "model.glb"),
        ("model.glb", "glb", "model.glb"),
        ("model.GLB", "glb", "model.GLB"),
        ("out/parts/model", "stl", "out/parts/model.stl"),
        ("out.d/model", "ply", "out.d/model.ply"),
    ],
)
def test_resolve_given_path(output: str, fmt: str, expected: str) -> None:
    assert resolve_output_path("abcdef1234567890", fmt, output) == Path(expected)


def test_resolve_without_path_uses_uid_prefix() -> None:
    assert str(resolve_output_path("abcdef1234567890", "glb")) == "model_abcdef12.glb"


def test_resolve_accepts_path_objects() -> None:
    assert resolve_output_path("u", "obj", Path("a/b.stl")) == Path("a/b.obj")


@pytest.mark.parametrize(
    "output,expected",
    [
        ("model.glb", Format.GLB),
        ("MODEL.FBX", Format.FBX),
        ("model.ply", Format.PLY),
        ("model.step", Format.STL),
        ("model", Format.STL),
        (None, Format.STL),
    ],
)
def test_infer_format(output, expected: Format) -> None:
    assert infer_format(output) is expected
