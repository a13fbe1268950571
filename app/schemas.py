"""Pydantic schemas for request/response validation in the URL shortener.

This module defines Pydantic models for API input validation and output serialization,
ensuring type safety and automatic OpenAPI documentation generation.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    └─ url: str (validated URL)

    UpdateRequest (Input)
    └─ new_url: str (validated URL)

    LinkResponse (Output)
    ├─ code: str
    ├─ url: str
    └─ short_url: str (computed)

    URLLookupResponse (Output)
    └─ url: str

    LinkListResponse (Output)
    └─ urls: dict[str, str]

    HealthResponse (Output)
    └─ status: HealthStatus

How to Use
===========
**Step 1 — Input validation**::
    @router.post("/api/shorten")
    async def shorten_url(payload: ShortenRequest):
        # payload.url is already validated
        return await store.create_link(payload.url)

**Step 2 — Response serialization**::
    return LinkResponse.build(code, url, settings.BASE_URL)

Key Behaviours
===============
- URL validation uses the validators library for RFC compliance.
- Empty or malformed URLs are rejected with 422 before reaching the store.
- FastAPI automatically generates OpenAPI docs from these schemas.
"""

import validators
from pydantic import BaseModel, Field, field_validator

from app.enums import HealthStatus

__all__ = [
    "ShortenRequest",
    "UpdateRequest",
    "LinkResponse",
    "URLLookupResponse",
    "LinkListResponse",
    "HealthResponse",
]


def _check_url(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("URL is required")
    if not validators.url(v):
        raise ValueError("Invalid URL provided")
    return v


class ShortenRequest(BaseModel):
    url: str = Field(..., description="Destination URL, e.g. 'https://example.com'")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_url(v)


class UpdateRequest(BaseModel):
    new_url: str = Field(..., description="New destination for an existing code")

    @field_validator("new_url")
    @classmethod
    def validate_new_url(cls, v: str) -> str:
        return _check_url(v)


class LinkResponse(BaseModel):
    code: str
    url: str
    short_url: str

    @classmethod
    def build(cls, code: str, url: str, base_url: str) -> "LinkResponse":
        return cls(code=code, url=url, short_url=f"{base_url.rstrip('/')}/{code}")


class URLLookupResponse(BaseModel):
    url: str


class LinkListResponse(BaseModel):
    urls: dict[str, str]


class HealthResponse(BaseModel):
    status: HealthStatus
