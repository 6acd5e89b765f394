"""Flatten and validate raw Zillow search records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from rental_sync.crawlers.schemas import ZillowProperty

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "__"
UNIT_FIELDS = ("price", "beds", "bathrooms")


def flatten_mapping(record: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into ``parent__child`` keys.

    Lists are kept as-is and never descended into.
    """

    flattened: dict[str, Any] = {}
    for key, value in record.items():
        new_key = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flattened.update(flatten_mapping(value, new_key))
        else:
            flattened[new_key] = value
    return flattened


def augment_with_units(
    base_record: Mapping[str, Any], units: Iterable[Any]
) -> dict[str, Any]:
    """Copy ``base_record`` adding ``price_N``/``beds_N``/``bathrooms_N`` per unit."""

    augmented = dict(base_record)
    for index, unit in enumerate(units, start=1):
        if not isinstance(unit, Mapping):
            continue
        for field_name in UNIT_FIELDS:
            if field_name in unit:
                augmented[f"{field_name}_{index}"] = unit[field_name]
    return augmented


def to_property(record: Mapping[str, Any]) -> ZillowProperty | None:
    """Validate one raw record; return None (and log) when it is unusable."""

    flattened = flatten_mapping(record)

    units = record.get("units")
    if isinstance(units, list) and units:
        flattened = augment_with_units(flattened, units)
        flattened["units"] = units

    try:
        return ZillowProperty.model_validate(flattened)
    except ValidationError as exc:
        logger.warning(
            "Dropping record detailUrl=%r: %s",
            flattened.get("detailUrl"),
            exc.errors(include_url=False),
        )
        return None


def records_to_properties(records: Iterable[Mapping[str, Any]]) -> list[ZillowProperty]:
    """Validate raw records, keeping only the ones that parse."""

    properties: list[ZillowProperty] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Dropping non-object record: %r", type(record).__name__)
            continue
        prop = to_property(record)
        if prop is not None:
            properties.append(prop)
    return properties
