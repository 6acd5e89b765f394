"""Validated shapes for Zillow search results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ZillowUnit(BaseModel):
    """One unit of a multi-unit listing."""

    model_config = ConfigDict(extra="ignore")

    price: float | None = None
    beds: float | None = None
    bathrooms: float | None = None


class ZillowProperty(BaseModel):
    """A flattened search result that passed validation."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    detail_url: str = Field(alias="detailUrl", min_length=1)
    longitude: float | None = None
    latitude: float | None = None
    address: str | None = None
    price: float | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    living_area: float | None = Field(default=None, alias="livingArea")
    property_type: str | None = Field(default=None, alias="propertyType")
    units: list[ZillowUnit] | None = None
