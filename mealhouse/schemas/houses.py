"""Pydantic schemas for house endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_title(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("title must not be blank")
    return v


class HouseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    location: str | None = Field(default=None, max_length=1024)
    owner_id: str | None = Field(
        default=None,
        description="Admins only: create the house on behalf of this owner.",
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _strip_title(v)


class HouseUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    location: str | None = Field(default=None, max_length=1024)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        return _strip_title(v)


class HouseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: str | None = None
    location: str | None = None
    created_at: datetime
