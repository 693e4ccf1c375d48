"""FastAPI REST API for punctuation-normalizer."""

from __future__ import annotations

import hashlib
import json
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from api.logging_config import LOG_LEVEL, get_logger, setup_logging
from punctuation_normalizer import (
    NormalizationOptions,
    PunctuationStats,
    normalize,
    normalize_stream,
    normalize_with_stats,
    validate_keep_list,
)
from punctuation_normalizer.stats import round_half_up

API_VERSION = "0.1.0"

setup_logging()
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Redis Cache
# ---------------------------------------------------------------------------

redis_client: aioredis.Redis | None = None

# Seconds a cached result lives
CACHE_TTL = int(os.getenv("CACHE_TTL", "3600"))

# Credentials, if any, are stripped before the URL is reported
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379")

_CACHE_PREFIXES = ("normalize", "normalize_stats")


def _generate_cache_key(prefix: str, data: dict) -> str:
    """Hash a request body into a namespaced cache key."""
    sorted_data = json.dumps(data, sort_keys=True)
    hash_value = hashlib.sha256(sorted_data.encode()).hexdigest()[:16]
    return f"{prefix}:{hash_value}"


async def _cache_get(key: str) -> str | None:
    if redis_client is None:
        return None
    try:
        cached = await redis_client.get(key)
    except RedisError as e:
        logger.warning("cache_get_failed", key=key, error=str(e))
        return None
    logger.debug("cache_hit" if cached is not None else "cache_miss", key=key)
    return cached


async def _cache_set(key: str, value: str) -> None:
    if redis_client is None:
        return
    try:
        await redis_client.setex(key, CACHE_TTL, value)
    except RedisError as e:
        logger.warning("cache_set_failed", key=key, error=str(e))


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------


class OptionsModel(BaseModel):
    """Normalization switches shared by every normalizing request."""

    keep_apostrophes: bool = Field(default=True, description="Keep contractions and possessives")
    keep_hyphens: bool = Field(default=False, description="Keep hyphen/underscore compounds")
    keep_email_url: bool = Field(default=True, description="Keep email addresses and URLs")
    keep_numbers: bool = Field(default=True, description="Keep digits")
    keep_line_breaks: bool = Field(default=True, description="Keep line structure")
    custom_keep_list: str = Field(
        default="", description="Characters that are never removed (no \\n, \\r or \\t)"
    )


class NormalizeRequest(OptionsModel):
    """Request body for normalization endpoints."""

    text: str = Field(..., description="Text to normalize")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "text": "Don't worry, we'll email team@example.com today!",
                "keep_apostrophes": True,
            }
        ]
    }}


class NormalizeResponse(BaseModel):
    """Response body for the /normalize endpoint."""

    text: str = Field(..., description="Normalized text")


class ProtectedElementsResponse(BaseModel):
    emails: int
    urls: int
    contractions: int
    hyphens: int


class StatsResponse(BaseModel):
    """Punctuation statistics for one text."""

    original_length: int = Field(..., description="Length of the input text")
    result_length: int = Field(..., description="Normalized text length")
    characters_removed: int = Field(..., description="original_length - result_length")
    reduction_percentage: int = Field(..., description="Rounded percentage of characters removed")
    punctuation_found: list[str] = Field(
        default_factory=list, description="Distinct punctuation characters in the original"
    )
    protected_elements: ProtectedElementsResponse


class NormalizeStatsResponse(BaseModel):
    """Response body for the /normalize/stats endpoint."""

    text: str = Field(..., description="Normalized text")
    stats: StatsResponse


class BatchItem(BaseModel):
    """A single item in a batch normalization request."""

    id: str = Field(..., description="Caller-chosen id, echoed back")
    text: str = Field(..., description="Text to normalize")


class BatchRequest(OptionsModel):
    """Request body for batch normalization."""

    items: list[BatchItem] = Field(..., description="List of texts to normalize")


class BatchItemResponse(BaseModel):
    """A single result in a batch normalization response."""

    id: str
    text: str
    original_length: int
    result_length: int
    reduction_percentage: int


class BatchResponse(BaseModel):
    """Response body for batch normalization."""

    items: list[BatchItemResponse]
    total_original_length: int
    total_result_length: int
    overall_reduction_percentage: int


class StreamRequest(OptionsModel):
    """Request body for streaming normalization."""

    chunks: list[str] = Field(..., description="Text chunks to normalize")
    buffer_size: int = Field(default=4096, ge=64, description="Buffer size for streaming")


class KeepListRequest(BaseModel):
    custom_keep_list: str = Field(..., description="Proposed custom keep-list")


class KeepListResponse(BaseModel):
    is_valid: bool
    invalid_chars: list[str] = Field(
        default_factory=list, description="Offending characters as escape sequences"
    )


class HealthResponse(BaseModel):
    """Service liveness and cache availability."""

    status: str = "ok"
    version: str
    cache_enabled: bool = False
    redis_connected: bool = False


class CacheStatsResponse(BaseModel):
    """Redis cache figures."""

    enabled: bool
    connected: bool
    ttl_seconds: int
    redis_url: str
    keys_count: int | None = None
    memory_used: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_options(req: OptionsModel) -> NormalizationOptions:
    """Turn request fields into NormalizationOptions.

    Raises:
        ValueError: If the custom keep-list contains line breaks or tabs.
    """
    validation = validate_keep_list(req.custom_keep_list)
    if not validation.is_valid:
        logger.info("keep_list_rejected", invalid_chars=list(validation.invalid_chars))
        raise ValueError(
            "custom_keep_list contains disallowed characters: "
            + ", ".join(validation.invalid_chars)
        )
    return NormalizationOptions(
        keep_apostrophes=req.keep_apostrophes,
        keep_hyphens=req.keep_hyphens,
        keep_email_url=req.keep_email_url,
        keep_numbers=req.keep_numbers,
        keep_line_breaks=req.keep_line_breaks,
        custom_keep_list=req.custom_keep_list,
    )


def _stats_to_response(stats: PunctuationStats) -> StatsResponse:
    """Convert PunctuationStats to the API response model."""
    counts = stats.protected_elements
    return StatsResponse(
        original_length=stats.original_length,
        result_length=stats.result_length,
        characters_removed=stats.characters_removed,
        reduction_percentage=stats.reduction_percentage,
        punctuation_found=list(stats.punctuation_found),
        protected_elements=ProtectedElementsResponse(
            emails=counts.emails,
            urls=counts.urls,
            contractions=counts.contractions,
            hyphens=counts.hyphens,
        ),
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect to Redis on startup; serve uncached if it is unreachable."""
    global redis_client
    try:
        redis_client = await aioredis.from_url(
            REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        await redis_client.ping()
        logger.info("redis_connected", redis_url=REDIS_URL)
    except (RedisError, OSError) as e:
        logger.warning("redis_unavailable", redis_url=REDIS_URL, error=str(e))
        redis_client = None

    yield

    if redis_client:
        await redis_client.aclose()


app = FastAPI(
    title="Punctuation Normalizer API",
    description=(
        "REST API for removing punctuation from text while keeping contractions, "
        "hyphenated compounds, email addresses, URLs, digits, line breaks and any "
        "user-chosen characters intact."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Report the service version and whether Redis answers."""
    redis_connected = False
    if redis_client:
        try:
            await redis_client.ping()
            redis_connected = True
        except RedisError as e:
            logger.warning("redis_ping_failed", error=str(e))

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        cache_enabled=redis_client is not None,
        redis_connected=redis_connected,
    )


@app.get("/cache/stats", response_model=CacheStatsResponse, tags=["Cache"])
async def cache_stats() -> CacheStatsResponse:
    """Report how many normalizations are cached and Redis memory use."""
    keys_count = None
    memory_used = None
    connected = False

    if redis_client:
        try:
            await redis_client.ping()
            connected = True
            keys_count = 0
            for prefix in _CACHE_PREFIXES:
                keys_count += len(await redis_client.keys(f"{prefix}:*"))

            info = await redis_client.info("memory")
            memory_used = info.get("used_memory_human", "unknown")
        except RedisError as e:
            logger.warning("cache_stats_failed", error=str(e))

    return CacheStatsResponse(
        enabled=redis_client is not None,
        connected=connected,
        ttl_seconds=CACHE_TTL,
        redis_url=REDIS_URL.split("@")[-1] if "@" in REDIS_URL else REDIS_URL,
        keys_count=keys_count,
        memory_used=memory_used,
    )


@app.post("/normalize", response_model=NormalizeResponse, tags=["Normalization"])
async def normalize_text(req: NormalizeRequest) -> NormalizeResponse:
    """Remove punctuation from text.

    Contractions, email addresses, URLs and (optionally) hyphenated compounds
    are kept intact according to the request options.

    Results are cached in Redis when it is available.
    """
    try:
        options = _build_options(req)
        cache_key = _generate_cache_key("normalize", req.model_dump())

        cached = await _cache_get(cache_key)
        if cached is not None:
            return NormalizeResponse(text=cached)

        result = normalize(req.text, options)
        await _cache_set(cache_key, result)

        return NormalizeResponse(text=result)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/normalize/stats", response_model=NormalizeStatsResponse, tags=["Normalization"])
async def normalize_text_with_stats(req: NormalizeRequest) -> NormalizeStatsResponse:
    """Remove punctuation and return statistics about what was found.

    Results are cached in Redis when it is available.
    """
    try:
        options = _build_options(req)
        cache_key = _generate_cache_key("normalize_stats", req.model_dump())

        cached = await _cache_get(cache_key)
        if cached is not None:
            return NormalizeStatsResponse(**json.loads(cached))

        result = normalize_with_stats(req.text, options)
        response = NormalizeStatsResponse(
            text=result.text,
            stats=_stats_to_response(result.stats),
        )
        await _cache_set(cache_key, response.model_dump_json())

        return response
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/normalize/batch", response_model=BatchResponse, tags=["Normalization"])
async def normalize_batch(req: BatchRequest) -> BatchResponse:
    """Normalize multiple texts in a single request.

    Each item is normalized independently with the same options.
    Returns per-item results and aggregate figures.
    """
    try:
        options = _build_options(req)
        items: list[BatchItemResponse] = []
        total_orig = 0
        total_result = 0

        for item in req.items:
            result = normalize_with_stats(item.text, options)
            items.append(BatchItemResponse(
                id=item.id,
                text=result.text,
                original_length=result.stats.original_length,
                result_length=result.stats.result_length,
                reduction_percentage=result.stats.reduction_percentage,
            ))
            total_orig += result.stats.original_length
            total_result += result.stats.result_length

        overall = round_half_up((total_orig - total_result) / total_orig * 100) if total_orig > 0 else 0
        return BatchResponse(
            items=items,
            total_original_length=total_orig,
            total_result_length=total_result,
            overall_reduction_percentage=overall,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/normalize/stream", tags=["Normalization"])
async def normalize_text_stream(req: StreamRequest) -> StreamingResponse:
    """Normalize text chunks and return a streaming response.

    Accepts an array of text chunks, normalizes them with the streaming
    API, and returns the normalized pieces as a streaming text response.
    """
    try:
        options = _build_options(req)

        def generate():
            yield from normalize_stream(req.chunks, options, buffer_size=req.buffer_size)

        return StreamingResponse(generate(), media_type="text/plain")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/keep-list/validate", response_model=KeepListResponse, tags=["Validation"])
async def validate_custom_keep_list(req: KeepListRequest) -> KeepListResponse:
    """Check a custom keep-list for line breaks and tabs before using it."""
    validation = validate_keep_list(req.custom_keep_list)
    return KeepListResponse(
        is_valid=validation.is_valid,
        invalid_chars=list(validation.invalid_chars),
    )


def main() -> None:
    """
    Entry point for running the API server directly.

    For development use. In production, use uvicorn directly.
    """
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=True,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
