"""API routes implementation."""

from fastapi import APIRouter, Request, HTTPException, Response, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone

from .schemas import (
    ShortenRequest,
    UpdateRequest,
    MappingResponse,
    HealthResponse,
    ErrorResponse,
)
from shortlink.common.urls import build_short_url, resolve_base_url
from shortlink.database.models import URLMapping
from shortlink.errors import (
    ConflictError,
    ExhaustedRetriesError,
    InvalidInputError,
    NotFoundError,
    ShortenerError,
)

router = APIRouter()


def mapping_response(request: Request, mapping: URLMapping) -> MappingResponse:
    """Render a mapping with the short URL clients should share."""
    config = request.app.state.config

    base_url = resolve_base_url(
        headers=request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )

    return MappingResponse(
        id=mapping.id,
        short_code=mapping.short_code,
        short_url=build_short_url(mapping.short_code, base_url, config.path_prefix),
        long_url=mapping.long_url,
        created_at=mapping.created_at,
        updated_at=mapping.updated_at,
        access_count=mapping.access_count,
    )


def http_error(error: ShortenerError) -> HTTPException:
    """Map a service error to a status code. Storage details stay in the logs."""
    if isinstance(error, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ExhaustedRetriesError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.post(
    "/shorten",
    status_code=status.HTTP_201_CREATED,
    response_model=MappingResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        409: {"model": MappingResponse, "description": "URL already shortened; body is the existing mapping"},
        503: {"model": ErrorResponse, "description": "Could not allocate a unique short code"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service

    try:
        mapping = await service.create(body.url)
    except ConflictError as e:
        existing = mapping_response(request, e.mapping)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=existing.model_dump(mode="json"),
        )
    except ShortenerError as e:
        raise http_error(e)

    return mapping_response(request, mapping)


@router.get(
    "/shorten/{short_code}",
    response_model=MappingResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get short URL",
)
async def get_url(request: Request, short_code: str):
    """Get the mapping for a short code."""
    service = request.app.state.service

    try:
        mapping = await service.get(short_code)
    except ShortenerError as e:
        raise http_error(e)

    return mapping_response(request, mapping)


@router.put(
    "/shorten/{short_code}",
    response_model=MappingResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Update short URL",
)
async def update_url(request: Request, short_code: str, body: UpdateRequest):
    """Point an existing short code at a new URL."""
    service = request.app.state.service

    try:
        mapping = await service.update(short_code, body.url)
    except ShortenerError as e:
        raise http_error(e)

    return mapping_response(request, mapping)


@router.delete(
    "/shorten/{short_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Delete short URL",
)
async def delete_url(request: Request, short_code: str):
    """Delete a short URL."""
    service = request.app.state.service

    try:
        await service.delete(short_code)
    except ShortenerError as e:
        raise http_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/shorten/{short_code}/stats",
    response_model=MappingResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get access statistics",
)
async def get_stats(request: Request, short_code: str):
    """Get the mapping including its access count."""
    service = request.app.state.service

    try:
        mapping = await service.get_stats(short_code)
    except ShortenerError as e:
        raise http_error(e)

    return mapping_response(request, mapping)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
