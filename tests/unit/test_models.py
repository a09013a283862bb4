"""Unit tests for data models and lookup tables."""

from __future__ import annotations

import pytest

from printpal.models import (
    CREDIT_COSTS,
    GENERATION_TIMEOUTS,
    DownloadInfo,
    Format,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    GenerationStatusValue,
    PricingInfo,
    Quality,
    UsageStats,
)


class TestStatusParsing:
    """Raw status strings map onto the closed status set."""

    @pytest.mark.parametrize(
        "raw,completed,failed,processing",
        [
            ("completed", True, False, False),
            ("failed", False, True, False),
            ("pending", False, False, True),
            ("processing", False, False, True),
            ("queued", False, False, True),
            ("", False, False, True),
            (None, False, False, True),
            ("COMPLETED", True, False, False),
        ],
    )
    def test_derived_flags(self, raw, completed, failed, processing) -> None:
        status = GenerationStatus.from_payload({"status": raw}, fallback_uid="uid")
        assert (status.is_completed, status.is_failed, status.is_processing) == (
            completed,
            failed,
            processing,
        )

    def test_parse_is_idempotent(self) -> None:
        first = GenerationStatusValue.parse("something-new")
        second = GenerationStatusValue.parse("something-new")
        assert first is second is GenerationStatusValue.PROCESSING

    def test_flags_follow_status_changes(self) -> None:
        status = GenerationStatus(generation_uid="uid", status=GenerationStatusValue.PENDING)
        assert status.is_processing
        status.status = GenerationStatusValue.COMPLETED
        assert status.is_completed and not status.is_processing

    def test_fallback_uid_used_when_missing(self) -> None:
        status = GenerationStatus.from_payload({"status": "pending"}, fallback_uid="abc")
        assert status.generation_uid == "abc"
        assert status.raw_status == "pending"


class TestGenerationRequest:
    def test_non_super_includes_inference_fields(self) -> None:
        request = GenerationRequest(image=b"x", filename="a.png")
        fields = request.form_fields()
        assert fields == {
            "quality": "default",
            "format": "stl",
            "num_inference_steps": "20",
            "guidance_scale": "5.0",
            "octree_resolution": "256",
        }

    def test_super_omits_inference_fields(self) -> None:
        request = GenerationRequest(image=b"x", filename="a.png", quality=Quality.SUPER)
        assert request.form_fields() == {"quality": "super", "format": "stl"}

    def test_prompt_request_multipart(self) -> None:
        request = GenerationRequest(prompt="a lamp", quality=Quality.HIGH, format=Format.OBJ)
        parts = request.multipart()
        assert parts["prompt"] == (None, b"a lamp", None)
        assert "image" not in parts

    def test_image_request_multipart(self) -> None:
        request = GenerationRequest(image=b"png", filename="cat.png")
        parts = request.multipart()
        assert parts["image"] == ("cat.png", b"png", "application/octet-stream")
        assert "prompt" not in parts


def test_lookup_tables_cover_every_tier_and_are_read_only() -> None:
    assert set(CREDIT_COSTS) == set(Quality)
    assert set(GENERATION_TIMEOUTS) == set(Quality)
    assert GENERATION_TIMEOUTS[Quality.ULTRA] == 300
    with pytest.raises(TypeError):
        CREDIT_COSTS[Quality.DEFAULT] = 1  # type: ignore[index]


def test_quality_families() -> None:
    assert Quality.SUPERPLUS.is_super
    assert not Quality.ULTRA.is_super
    assert Quality.SUPER_TEXTURE.has_texture
    assert not Quality.SUPER.has_texture


def test_result_falls_back_to_estimated_table() -> None:
    result = GenerationResult.from_payload(
        {"generation_uid": "u1", "status": "pending", "credits_used": 20, "credits_remaining": 5},
        Quality.SUPER,
        Format.STL,
    )
    assert result.estimated_time_seconds == 180
    assert result.status is GenerationStatusValue.PENDING


def test_download_info_normalises_format() -> None:
    info = DownloadInfo.from_payload(
        {"download_url": "https://cdn/x", "expires_in": 3600, "format": "GLB"}, fallback_uid="u"
    )
    assert info.format == "glb"
    assert info.generation_uid == "u"


def test_pricing_and_usage_parsing() -> None:
    pricing = PricingInfo.from_payload(
        {
            "credits": {
                "super_generation": {
                    "cost": 20,
                    "description": "High-resolution geometry",
                    "resolution": "768 cubed",
                    "estimated_time_seconds": 180,
                }
            },
            "supported_formats": ["stl", "glb"],
            "rate_limits": {"requests_per_minute": 60, "concurrent_generations": 3},
        }
    )
    assert pricing.tiers["super_generation"].cost == 20
    assert pricing.rate_limits.concurrent_generations == 3

    usage = UsageStats.from_payload(
        {
            "api_key": {"name": "ci", "total_requests": 7, "credits_used": 28, "last_used": None},
            "user": {"credits_remaining": 72},
            "recent_requests": [
                {
                    "endpoint": "/api/generate",
                    "method": "POST",
                    "status_code": 200,
                    "credits_used": 4,
                    "generation_uid": "u1",
                    "timestamp": "2024-01-01T00:00:00Z",
                }
            ],
        }
    )
    assert usage.api_key.total_requests == 7
    assert usage.credits_remaining == 72
    assert usage.recent_requests[0].generation_uid == "u1"
