"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ShortenRequest(BaseModel):
    """Request to shorten a URL.

    The URL is validated by the service so malformed input maps to 400.
    """

    url: str = Field(..., description="The http(s) URL to shorten")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
            ]
        }
    }


class UpdateRequest(BaseModel):
    """Request to point a short code at a new URL."""

    url: str = Field(..., description="The new http(s) destination")


class MappingResponse(BaseModel):
    """A short code mapping."""

    id: str = Field(..., description="Opaque mapping identifier")
    short_code: str = Field(..., description="The 6-character short code")
    short_url: str = Field(..., description="The complete short URL")
    long_url: str = Field(..., description="The destination URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")
    access_count: int = Field(..., description="Successful redirects so far")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "6f1c0d8e2b7a4d0c9a3e5f7b1c2d3e4f",
                    "short_code": "Ab3dE9",
                    "short_url": "https://sho.rt/Ab3dE9",
                    "long_url": "https://example.com",
                    "created_at": "2024-01-01T12:00:00Z",
                    "updated_at": "2024-01-01T12:00:00Z",
                    "access_count": 0
                }
            ]
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Storage backend status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")
