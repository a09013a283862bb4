"""Output path helpers for downloaded models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .models import Format

PathLike = Union[str, Path]


def resolve_output_path(
    generation_uid: str,
    fmt: str,
    output_path: Optional[PathLike] = None,
) -> Path:
    """Return where a model in ``fmt`` should be written.

    With no path, a name is derived from the first eight characters of the
    UID. A given path keeps its name but its extension is forced to ``fmt``:
    a different extension is replaced, a missing one appended.
    """

    fmt = fmt.lower().lstrip(".")
    if not output_path:
        return Path(f"model_{generation_uid[:8]}.{fmt}")

    path = Path(output_path)
    ext = path.suffix.lower().lstrip(".")
    if not ext:
        return path.with_name(f"{path.name}.{fmt}")
    if ext != fmt:
        return path.with_suffix(f".{fmt}")
    return path


def infer_format(output_path: Optional[PathLike], default: Format = Format.STL) -> Format:
    """Guess the output format from a file extension, falling back to ``default``."""

    if not output_path:
        return default
    ext = Path(output_path).suffix.lower().lstrip(".")
    try:
        return Format(ext)
    except ValueError:
        return default


__all__ = ["PathLike", "infer_format", "resolve_output_path"]
