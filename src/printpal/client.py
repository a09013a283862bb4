"""Async client for the PrintPal 3D model generation API."""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import httpx

from .config import DEFAULT_BASE_URL, settings
from .errors import (
    GenerationError,
    NetworkError,
    PrintPalError,
    TimedOutError,
    ValidationError,
    error_from_response,
)
from .http import http_client
from .logging import get_logger
from .models import (
    DEFAULT_GUIDANCE_SCALE,
    DEFAULT_INFERENCE_STEPS,
    DEFAULT_OCTREE_RESOLUTION,
    FALLBACK_TIMEOUT,
    GENERATION_TIMEOUTS,
    CreditsInfo,
    DownloadInfo,
    Format,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    HealthStatus,
    PricingInfo,
    Quality,
    UsageStats,
)
from .paths import PathLike, infer_format, resolve_output_path
from .validation import coerce_format, coerce_quality, validate_request

LOGGER = get_logger(__name__)

ProgressCallback = Callable[[GenerationStatus], None]

_DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


class PrintPalClient:
    """Typed wrapper around the PrintPal generation API.

    Every call opens its own short-lived HTTP client, so one instance can be
    shared freely between concurrent tasks.

    Submitting is not idempotent: the service charges credits per request and
    offers no deduplication, so retrying a submission that timed out may
    start (and bill) a second generation.

    Example::

        async with PrintPalClient("pp_live_...") as client:
            result = await client.generate_from_image("photo.png", quality=Quality.SUPER)
            path = await client.wait_and_download(result.generation_uid, "out.stl")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = (api_key or settings.api_key or "").strip()
        if not self._api_key:
            raise ValidationError("API key is required")
        raw_base = base_url or settings.base_url or DEFAULT_BASE_URL
        self._base_url = raw_base.rstrip("/")
        self._timeout = float(timeout if timeout is not None else settings.timeout)
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    async def __aenter__(self) -> "PrintPalClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        files: Any = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Perform exactly one round trip and return the decoded JSON body."""

        try:
            async with http_client(
                base_url=self._base_url,
                api_key=self._api_key if authenticated else None,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await asyncio.wait_for(
                    client.request(method, path, json=json, files=files),
                    timeout=self._timeout,
                )
                if not response.is_success:
                    payload = _json_or_empty(response)
                    LOGGER.warning(
                        "PrintPal request failed",
                        method=method,
                        path=path,
                        status_code=response.status_code,
                    )
                    raise error_from_response(
                        response.status_code,
                        payload,
                        retry_after_header=response.headers.get("Retry-After"),
                    )
                try:
                    return response.json()
                except ValueError:
                    raise PrintPalError(
                        "Invalid JSON in response", response.status_code, response.text
                    ) from None
        except PrintPalError:
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise TimedOutError("Request timed out") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network error: {exc}") from exc

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def get_credits(self) -> CreditsInfo:
        """Return the current credit balance."""

        return CreditsInfo.from_payload(await self._request("GET", "/api/credits"))

    async def get_pricing(self) -> PricingInfo:
        """Return pricing for every quality tier plus rate limits."""

        return PricingInfo.from_payload(await self._request("GET", "/api/pricing"))

    async def get_usage(self) -> UsageStats:
        return UsageStats.from_payload(await self._request("GET", "/api/usage"))

    async def health_check(self) -> HealthStatus:
        """Check API health. Does not send the API key."""

        payload = await self._request("GET", "/api/health", authenticated=False)
        return HealthStatus.from_payload(payload)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, request: GenerationRequest) -> GenerationResult:
        """Validate and submit a generation request.

        Raises :class:`ValidationError` before any network traffic when the
        request is not acceptable.
        """

        validate_request(request)
        payload = await self._request("POST", "/api/generate", files=request.multipart())
        result = GenerationResult.from_payload(payload, request.quality, request.format)
        LOGGER.info(
            "PrintPal generation submitted",
            generation_uid=result.generation_uid,
            quality=request.quality.value,
            format=request.format.value,
            source="prompt" if request.is_prompt else "image",
            credits_used=result.credits_used,
        )
        return result

    async def generate_from_bytes(
        self,
        data: bytes,
        filename: str,
        *,
        quality: Union[Quality, str] = Quality.DEFAULT,
        format: Union[Format, str] = Format.STL,
        num_inference_steps: int = DEFAULT_INFERENCE_STEPS,
        guidance_scale: float = DEFAULT_GUIDANCE_SCALE,
        octree_resolution: int = DEFAULT_OCTREE_RESOLUTION,
    ) -> GenerationResult:
        """Generate a model from in-memory image data."""

        request = GenerationRequest(
            quality=coerce_quality(quality),
            format=coerce_format(format),
            image=data,
            filename=filename,
            num_inference_steps=num_inference_steps,
            guidance_scale=guidance_scale,
            octree_resolution=octree_resolution,
        )
        return await self.submit(request)

    async def generate_from_image(
        self,
        image_path: PathLike,
        *,
        quality: Union[Quality, str] = Quality.DEFAULT,
        format: Union[Format, str] = Format.STL,
        num_inference_steps: int = DEFAULT_INFERENCE_STEPS,
        guidance_scale: float = DEFAULT_GUIDANCE_SCALE,
        octree_resolution: int = DEFAULT_OCTREE_RESOLUTION,
    ) -> GenerationResult:
        """Generate a model from an image file on disk."""

        quality = coerce_quality(quality)
        format = coerce_format(format)
        path = Path(image_path)
        return await self.generate_from_bytes(
            path.read_bytes(),
            path.name,
            quality=quality,
            format=format,
            num_inference_steps=num_inference_steps,
            guidance_scale=guidance_scale,
            octree_resolution=octree_resolution,
        )

    async def generate_from_prompt(
        self,
        prompt: str,
        *,
        quality: Union[Quality, str] = Quality.DEFAULT,
        format: Union[Format, str] = Format.STL,
        num_inference_steps: int = DEFAULT_INFERENCE_STEPS,
        guidance_scale: float = DEFAULT_GUIDANCE_SCALE,
        octree_resolution: int = DEFAULT_OCTREE_RESOLUTION,
    ) -> GenerationResult:
        """Generate a model from a text prompt.

        Text-to-3D is not offered for the super/superplus tiers.
        """

        request = GenerationRequest(
            quality=coerce_quality(quality),
            format=coerce_format(format),
            prompt=prompt,
            num_inference_steps=num_inference_steps,
            guidance_scale=guidance_scale,
            octree_resolution=octree_resolution,
        )
        return await self.submit(request)

    # ------------------------------------------------------------------
    # Status and download
    # ------------------------------------------------------------------

    async def get_status(self, generation_uid: str) -> GenerationStatus:
        """Fetch the latest status for a generation."""

        payload = await self._request("GET", f"/api/generate/{generation_uid}/status")
        status = GenerationStatus.from_payload(payload, fallback_uid=generation_uid)
        if str(status.raw_status or "").strip().lower() != status.status.value:
            LOGGER.warning(
                "Unrecognised generation status",
                generation_uid=generation_uid,
                raw_status=status.raw_status,
            )
        return status

    async def get_download_url(self, generation_uid: str) -> DownloadInfo:
        """Fetch a fresh pre-signed download URL. It expires, so do not cache it."""

        payload = await self._request("GET", f"/api/generate/{generation_uid}/download")
        return DownloadInfo.from_payload(payload, fallback_uid=generation_uid)

    async def download(
        self,
        generation_uid: str,
        output_path: Optional[PathLike] = None,
    ) -> Path:
        """Download a completed model and return the path it was written to.

        The file extension follows the format reported by the service, or the
        extension of ``output_path`` when the service reports none. Data is
        streamed into a ``.part`` file next to the target and only moved into
        place once complete, so an existing file survives a failed download.
        """

        info = await self.get_download_url(generation_uid)
        fmt = info.format
        if not fmt and output_path:
            fmt = Path(output_path).suffix.lower().lstrip(".")
        if not fmt:
            raise PrintPalError("Download response did not include a model format")

        target = resolve_output_path(generation_uid, fmt, output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(f"{target.name}.part")

        try:
            async with http_client(timeout=self._timeout, transport=self._transport) as client:
                async with client.stream("GET", info.download_url) as response:
                    if not response.is_success:
                        body = await response.aread()
                        raise PrintPalError(
                            f"Failed to download model: {response.reason_phrase}",
                            response.status_code,
                            body.decode("utf-8", errors="replace"),
                        )
                    with open(partial, "wb") as handle:
                        async for chunk in response.aiter_bytes(_DOWNLOAD_CHUNK_SIZE):
                            handle.write(chunk)
            os.replace(partial, target)
        except httpx.TimeoutException as exc:
            raise TimedOutError("Download timed out") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network error: {exc}") from exc
        finally:
            partial.unlink(missing_ok=True)

        LOGGER.info(
            "PrintPal model downloaded",
            generation_uid=generation_uid,
            path=str(target),
            format=fmt,
        )
        return target

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def _resolve_timeout(
        self,
        generation_uid: str,
        timeout: Optional[float],
        quality: Optional[Union[Quality, str]],
    ) -> float:
        if timeout is not None:
            return float(timeout)
        if quality is not None:
            return float(GENERATION_TIMEOUTS[coerce_quality(quality)])

        status = await self.get_status(generation_uid)
        if status.quality:
            try:
                return float(GENERATION_TIMEOUTS[Quality(status.quality)])
            except ValueError:
                return FALLBACK_TIMEOUT
        return FALLBACK_TIMEOUT

    async def wait_for_completion(
        self,
        generation_uid: str,
        *,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        quality: Optional[Union[Quality, str]] = None,
    ) -> GenerationStatus:
        """Poll until the generation completes, fails or runs out of time.

        Args:
            generation_uid: Handle returned by a submission
            poll_interval: Seconds between status checks (default from settings)
            timeout: Seconds to wait; defaults to the tier's recommended budget
            on_progress: Called with every status snapshot, once per poll
            quality: Tier used to pick the default timeout without an extra lookup

        Returns:
            The completed status snapshot

        Raises:
            GenerationError: The service reported the generation as failed
            TimedOutError: The generation was still running when time ran out
        """

        interval = poll_interval if poll_interval is not None else settings.poll_interval
        budget = await self._resolve_timeout(generation_uid, timeout, quality)

        start = time.monotonic()
        last_status = None
        while True:
            status = await self.get_status(generation_uid)
            if status.status != last_status:
                LOGGER.info(
                    "PrintPal generation status",
                    generation_uid=generation_uid,
                    status=status.status.value,
                )
                last_status = status.status

            if on_progress is not None:
                on_progress(status)

            if status.is_completed:
                return status
            if status.is_failed:
                raise GenerationError("Generation failed", generation_uid)

            if time.monotonic() - start >= budget:
                raise TimedOutError(f"Generation did not complete within {budget:g} seconds")

            await asyncio.sleep(interval)

    async def wait_and_download(
        self,
        generation_uid: str,
        output_path: Optional[PathLike] = None,
        *,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        quality: Optional[Union[Quality, str]] = None,
    ) -> Path:
        """Wait for completion, then download the model."""

        await self.wait_for_completion(
            generation_uid,
            poll_interval=poll_interval,
            timeout=timeout,
            on_progress=on_progress,
            quality=quality,
        )
        return await self.download(generation_uid, output_path)

    async def generate_and_download(
        self,
        image_path: PathLike,
        output_path: Optional[PathLike] = None,
        *,
        quality: Union[Quality, str] = Quality.DEFAULT,
        format: Optional[Union[Format, str]] = None,
        num_inference_steps: int = DEFAULT_INFERENCE_STEPS,
        guidance_scale: float = DEFAULT_GUIDANCE_SCALE,
        octree_resolution: int = DEFAULT_OCTREE_RESOLUTION,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """Submit an image, wait for the result and download it.

        When ``format`` is omitted it is taken from the output path's
        extension, falling back to STL.
        """

        quality = coerce_quality(quality)
        fmt = coerce_format(format) if format is not None else infer_format(output_path)

        result = await self.generate_from_image(
            image_path,
            quality=quality,
            format=fmt,
            num_inference_steps=num_inference_steps,
            guidance_scale=guidance_scale,
            octree_resolution=octree_resolution,
        )
        return await self.wait_and_download(
            result.generation_uid,
            output_path,
            poll_interval=poll_interval,
            timeout=timeout,
            on_progress=on_progress,
            quality=quality,
        )


__all__ = ["PrintPalClient", "ProgressCallback"]
