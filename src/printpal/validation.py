"""Local pre-flight checks run before any request reaches the network."""

from __future__ import annotations

from typing import Optional, Union

from .errors import ValidationError
from .models import TEXTURE_FORMATS, Format, GenerationRequest, Quality


def coerce_quality(value: Union[Quality, str]) -> Quality:
    if isinstance(value, Quality):
        return value
    try:
        return Quality(str(value).strip().lower())
    except ValueError:
        accepted = ", ".join(q.value for q in Quality)
        raise ValidationError(
            f"Unknown quality '{value}'. Expected one of: {accepted}"
        ) from None


def coerce_format(value: Union[Format, str]) -> Format:
    if isinstance(value, Format):
        return value
    try:
        return Format(str(value).strip().lower().lstrip("."))
    except ValueError:
        accepted = ", ".join(f.value for f in Format)
        raise ValidationError(
            f"Unknown format '{value}'. Expected one of: {accepted}"
        ) from None


def validate_quality_format(quality: Quality, fmt: Format) -> None:
    """Reject quality/format pairs the service cannot produce."""

    if quality.has_texture and fmt not in TEXTURE_FORMATS:
        raise ValidationError(
            f"Texture generation ({quality.value}) only supports GLB and OBJ formats"
        )
    if fmt is Format.FBX and not quality.is_super:
        raise ValidationError(
            "FBX format is only available for super/superplus quality levels"
        )


def validate_prompt(prompt: Optional[str], quality: Quality) -> None:
    """Reject empty prompts and prompts for tiers without text-to-3D."""

    if not prompt or not prompt.strip():
        raise ValidationError("Prompt is required")
    if quality.is_super:
        raise ValidationError(
            "Text-to-3D is not available for super/superplus quality levels. "
            "Please use an image instead."
        )


def validate_request(request: GenerationRequest) -> None:
    """Run every applicable check for a submission."""

    if request.is_prompt:
        validate_prompt(request.prompt, request.quality)
    elif not request.image:
        raise ValidationError("Image payload is empty")
    validate_quality_format(request.quality, request.format)


__all__ = [
    "coerce_format",
    "coerce_quality",
    "validate_prompt",
    "validate_quality_format",
    "validate_request",
]
