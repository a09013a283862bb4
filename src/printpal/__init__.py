"""Python client for the PrintPal 3D model generation API."""

__version__ = "0.1.0"

from .client import PrintPalClient, ProgressCallback  # noqa: E402
from .errors import (  # noqa: E402
    AuthenticationError,
    GenerationError,
    InsufficientCreditsError,
    NetworkError,
    NotFoundError,
    PrintPalError,
    RateLimitError,
    TimedOutError,
    ValidationError,
)
from .models import (  # noqa: E402
    CREDIT_COSTS,
    ESTIMATED_TIMES,
    GENERATION_TIMEOUTS,
    RESOLUTIONS,
    CreditsInfo,
    DownloadInfo,
    Format,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    GenerationStatusValue,
    HealthStatus,
    PricingInfo,
    PricingTier,
    Quality,
    UsageStats,
)

PrintPal = PrintPalClient

__all__ = [
    "AuthenticationError",
    "CREDIT_COSTS",
    "CreditsInfo",
    "DownloadInfo",
    "ESTIMATED_TIMES",
    "Format",
    "GENERATION_TIMEOUTS",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "GenerationStatusValue",
    "HealthStatus",
    "InsufficientCreditsError",
    "NetworkError",
    "NotFoundError",
    "PricingInfo",
    "PricingTier",
    "PrintPal",
    "PrintPalClient",
    "PrintPalError",
    "ProgressCallback",
    "Quality",
    "RESOLUTIONS",
    "RateLimitError",
    "TimedOutError",
    "UsageStats",
    "ValidationError",
    "__version__",
]
