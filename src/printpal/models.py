"""Data models and static lookup tables for the PrintPal API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Quality(str, Enum):
    """Generation quality tiers. Higher tiers cost more and take longer."""

    DEFAULT = "default"
    HIGH = "high"
    ULTRA = "ultra"
    SUPER = "super"
    SUPER_TEXTURE = "super_texture"
    SUPERPLUS = "superplus"
    SUPERPLUS_TEXTURE = "superplus_texture"

    @property
    def is_super(self) -> bool:
        return self in SUPER_QUALITIES

    @property
    def has_texture(self) -> bool:
        return self in TEXTURE_QUALITIES


class Format(str, Enum):
    """Output file formats for generated models."""

    STL = "stl"
    GLB = "glb"
    OBJ = "obj"
    PLY = "ply"
    FBX = "fbx"


class GenerationStatusValue(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "GenerationStatusValue":
        """Map a raw status string onto the known set.

        Anything unrecognised is treated as still processing so new server
        states never end a poll loop early.
        """
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.PROCESSING


SUPER_QUALITIES = frozenset(
    {Quality.SUPER, Quality.SUPER_TEXTURE, Quality.SUPERPLUS, Quality.SUPERPLUS_TEXTURE}
)
TEXTURE_QUALITIES = frozenset({Quality.SUPER_TEXTURE, Quality.SUPERPLUS_TEXTURE})
TEXTURE_FORMATS = frozenset({Format.GLB, Format.OBJ})

CREDIT_COSTS: Mapping[Quality, int] = MappingProxyType(
    {
        Quality.DEFAULT: 4,
        Quality.HIGH: 6,
        Quality.ULTRA: 8,
        Quality.SUPER: 20,
        Quality.SUPER_TEXTURE: 40,
        Quality.SUPERPLUS: 30,
        Quality.SUPERPLUS_TEXTURE: 50,
    }
)

# Seconds
ESTIMATED_TIMES: Mapping[Quality, int] = MappingProxyType(
    {
        Quality.DEFAULT: 20,
        Quality.HIGH: 30,
        Quality.ULTRA: 60,
        Quality.SUPER: 180,
        Quality.SUPER_TEXTURE: 360,
        Quality.SUPERPLUS: 240,
        Quality.SUPERPLUS_TEXTURE: 720,
    }
)

# Seconds; default wait budget per tier when the caller gives none
GENERATION_TIMEOUTS: Mapping[Quality, int] = MappingProxyType(
    {
        Quality.DEFAULT: 120,
        Quality.HIGH: 180,
        Quality.ULTRA: 300,
        Quality.SUPER: 360,
        Quality.SUPER_TEXTURE: 600,
        Quality.SUPERPLUS: 480,
        Quality.SUPERPLUS_TEXTURE: 600,
    }
)

FALLBACK_TIMEOUT = 600.0

RESOLUTIONS: Mapping[Quality, str] = MappingProxyType(
    {
        Quality.DEFAULT: "256 cubed",
        Quality.HIGH: "384 cubed",
        Quality.ULTRA: "512 cubed",
        Quality.SUPER: "768 cubed",
        Quality.SUPER_TEXTURE: "768 cubed",
        Quality.SUPERPLUS: "1024 cubed",
        Quality.SUPERPLUS_TEXTURE: "1024 cubed",
    }
)

DEFAULT_INFERENCE_STEPS = 20
DEFAULT_GUIDANCE_SCALE = 5.0
DEFAULT_OCTREE_RESOLUTION = 256


@dataclass(slots=True)
class GenerationRequest:
    """Everything needed for one ``POST /api/generate`` call.

    Exactly one of ``image`` (with ``filename``) or ``prompt`` is expected.
    Inference parameters only reach the wire for non-super tiers.
    """

    quality: Quality = Quality.DEFAULT
    format: Format = Format.STL
    image: Optional[bytes] = None
    filename: Optional[str] = None
    prompt: Optional[str] = None
    num_inference_steps: int = DEFAULT_INFERENCE_STEPS
    guidance_scale: float = DEFAULT_GUIDANCE_SCALE
    octree_resolution: int = DEFAULT_OCTREE_RESOLUTION

    @property
    def is_prompt(self) -> bool:
        return self.image is None

    def form_fields(self) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        if self.is_prompt:
            fields["prompt"] = self.prompt or ""
        fields["quality"] = self.quality.value
        fields["format"] = self.format.value
        if not self.quality.is_super:
            fields["num_inference_steps"] = str(self.num_inference_steps)
            fields["guidance_scale"] = str(self.guidance_scale)
            fields["octree_resolution"] = str(self.octree_resolution)
        return fields

    def multipart(self) -> Dict[str, Tuple[Optional[str], bytes, Optional[str]]]:
        # Text fields go out as file parts without a filename so prompt-only
        # requests are still multipart encoded.
        parts: Dict[str, Tuple[Optional[str], bytes, Optional[str]]] = {
            name: (None, value.encode("utf-8"), None) for name, value in self.form_fields().items()
        }
        if self.image is not None:
            parts["image"] = (self.filename or "image.png", self.image, "application/octet-stream")
        return parts


@dataclass(slots=True)
class GenerationResult:
    """Response to a successful submission."""

    generation_uid: str
    status: GenerationStatusValue
    quality: Quality
    format: Format
    credits_used: int
    credits_remaining: int
    estimated_time_seconds: float
    status_url: Optional[str] = None
    download_url: Optional[str] = None

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], quality: Quality, fmt: Format
    ) -> "GenerationResult":
        estimated = payload.get("estimated_time_seconds")
        return cls(
            generation_uid=payload.get("generation_uid", ""),
            status=GenerationStatusValue.parse(payload.get("status")),
            quality=quality,
            format=fmt,
            credits_used=payload.get("credits_used", CREDIT_COSTS[quality]),
            credits_remaining=payload.get("credits_remaining", 0),
            estimated_time_seconds=estimated if estimated is not None else ESTIMATED_TIMES[quality],
            status_url=payload.get("status_url"),
            download_url=payload.get("download_url"),
        )


@dataclass(slots=True)
class GenerationStatus:
    """Point-in-time snapshot of a generation as reported by the service."""

    generation_uid: str
    status: GenerationStatusValue
    raw_status: Optional[str] = None
    quality: Optional[str] = None
    format: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    download_url: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status is GenerationStatusValue.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status is GenerationStatusValue.FAILED

    @property
    def is_processing(self) -> bool:
        return not (self.is_completed or self.is_failed)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], fallback_uid: Optional[str] = None
    ) -> "GenerationStatus":
        raw = payload.get("status")
        return cls(
            generation_uid=payload.get("generation_uid") or fallback_uid or "",
            status=GenerationStatusValue.parse(raw),
            raw_status=raw,
            quality=payload.get("quality"),
            format=payload.get("format"),
            created_at=payload.get("created_at"),
            completed_at=payload.get("completed_at"),
            download_url=payload.get("download_url"),
        )


@dataclass(slots=True)
class DownloadInfo:
    """Short-lived signed download location for a finished model."""

    generation_uid: str
    download_url: str
    expires_in: int
    format: str

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], fallback_uid: Optional[str] = None
    ) -> "DownloadInfo":
        return cls(
            generation_uid=payload.get("generation_uid") or fallback_uid or "",
            download_url=payload.get("download_url", ""),
            expires_in=payload.get("expires_in", 0),
            format=str(payload.get("format", "")).lower(),
        )


@dataclass(slots=True)
class CreditsInfo:
    credits: int
    user_id: Optional[int] = None
    username: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CreditsInfo":
        return cls(
            credits=payload.get("credits", 0),
            user_id=payload.get("user_id"),
            username=payload.get("username"),
        )


@dataclass(slots=True)
class PricingTier:
    cost: int
    description: str = ""
    resolution: str = ""
    estimated_time_seconds: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PricingTier":
        return cls(
            cost=payload.get("cost", 0),
            description=payload.get("description", ""),
            resolution=payload.get("resolution", ""),
            estimated_time_seconds=payload.get("estimated_time_seconds"),
        )


@dataclass(slots=True)
class RateLimits:
    requests_per_minute: Optional[int] = None
    concurrent_generations: Optional[int] = None


@dataclass(slots=True)
class PricingInfo:
    """Per-tier pricing, supported formats and rate limits."""

    tiers: Dict[str, PricingTier] = field(default_factory=dict)
    supported_formats: List[str] = field(default_factory=list)
    rate_limits: RateLimits = field(default_factory=RateLimits)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PricingInfo":
        credits = payload.get("credits") or {}
        limits = payload.get("rate_limits") or {}
        return cls(
            tiers={name: PricingTier.from_payload(tier) for name, tier in credits.items()},
            supported_formats=list(payload.get("supported_formats") or []),
            rate_limits=RateLimits(
                requests_per_minute=limits.get("requests_per_minute"),
                concurrent_generations=limits.get("concurrent_generations"),
            ),
        )


@dataclass(slots=True)
class ApiKeyUsage:
    name: str = ""
    total_requests: int = 0
    credits_used: int = 0
    last_used: Optional[str] = None


@dataclass(slots=True)
class UsageRequest:
    endpoint: str
    method: str
    status_code: int
    credits_used: int = 0
    generation_uid: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass(slots=True)
class UsageStats:
    """Usage history for the API key in use."""

    api_key: ApiKeyUsage
    credits_remaining: int = 0
    recent_requests: List[UsageRequest] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UsageStats":
        key = payload.get("api_key") or {}
        user = payload.get("user") or {}
        return cls(
            api_key=ApiKeyUsage(
                name=key.get("name", ""),
                total_requests=key.get("total_requests", 0),
                credits_used=key.get("credits_used", 0),
                last_used=key.get("last_used"),
            ),
            credits_remaining=user.get("credits_remaining", 0),
            recent_requests=[
                UsageRequest(
                    endpoint=item.get("endpoint", ""),
                    method=item.get("method", ""),
                    status_code=item.get("status_code", 0),
                    credits_used=item.get("credits_used", 0),
                    generation_uid=item.get("generation_uid"),
                    timestamp=item.get("timestamp"),
                )
                for item in payload.get("recent_requests") or []
            ],
        )


@dataclass(slots=True)
class HealthStatus:
    status: str
    timestamp: Optional[str] = None
    version: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "HealthStatus":
        return cls(
            status=payload.get("status", "unknown"),
            timestamp=payload.get("timestamp"),
            version=payload.get("version"),
        )


__all__ = [
    "CREDIT_COSTS",
    "ESTIMATED_TIMES",
    "FALLBACK_TIMEOUT",
    "GENERATION_TIMEOUTS",
    "RESOLUTIONS",
    "SUPER_QUALITIES",
    "TEXTURE_FORMATS",
    "TEXTURE_QUALITIES",
    "ApiKeyUsage",
    "CreditsInfo",
    "DownloadInfo",
    "Format",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "GenerationStatusValue",
    "HealthStatus",
    "PricingInfo",
    "PricingTier",
    "Quality",
    "RateLimits",
    "UsageRequest",
    "UsageStats",
]
