"""Tests for flattening and validating raw search records."""

import logging

import pytest

from rental_sync.crawlers.normalize import (
    augment_with_units,
    flatten_mapping,
    records_to_properties,
    to_property,
)


def test_flatten_mapping_joins_nested_keys() -> None:
    nested = {"address": {"street": "123 Main St", "city": "Nashville"}, "price": 2000}

    assert flatten_mapping(nested) == {
        "address__street": "123 Main St",
        "address__city": "Nashville",
        "price": 2000,
    }


def test_flatten_mapping_handles_deep_nesting() -> None:
    nested = {"location": {"address": {"street": {"number": 123, "name": "Main St"}}}}

    assert flatten_mapping(nested) == {
        "location__address__street__number": 123,
        "location__address__street__name": "Main St",
    }


def test_flatten_mapping_keeps_lists_whole() -> None:
    nested = {
        "tags": ["apartment", "luxury"],
        "metadata": {"photos": ["photo1.jpg", "photo2.jpg"]},
    }

    assert flatten_mapping(nested) == {
        "tags": ["apartment", "luxury"],
        "metadata__photos": ["photo1.jpg", "photo2.jpg"],
    }


def test_flatten_mapping_empty_and_null_values() -> None:
    assert flatten_mapping({}) == {}
    assert flatten_mapping({"a": None, "b": {}}) == {"a": None}


def test_flatten_mapping_with_prefix() -> None:
    assert flatten_mapping({"street": "Main"}, "address") == {"address__street": "Main"}


def test_augment_with_units_adds_indexed_fields() -> None:
    base = {"detailUrl": "https://example.com", "address": "123 Main St"}
    units = [
        {"price": 2000, "beds": 2, "bathrooms": 2.0},
        {"price": 2100, "beds": 2, "bathrooms": 2.0},
    ]

    augmented = augment_with_units(base, units)

    assert augmented == {
        "detailUrl": "https://example.com",
        "address": "123 Main St",
        "price_1": 2000,
        "beds_1": 2,
        "bathrooms_1": 2.0,
        "price_2": 2100,
        "beds_2": 2,
        "bathrooms_2": 2.0,
    }
    assert "price_1" not in base


def test_augment_with_units_omits_missing_fields() -> None:
    augmented = augment_with_units(
        {"detailUrl": "https://example.com"}, [{"price": 2000}, {"beds": 3}]
    )

    assert augmented == {
        "detailUrl": "https://example.com",
        "price_1": 2000,
        "beds_2": 3,
    }


def test_to_property_parses_valid_record() -> None:
    prop = to_property(
        {
            "detailUrl": "https://zillow.com/homedetails/1",
            "price": 2000,
            "bedrooms": 2,
            "bathrooms": 1.5,
            "livingArea": 950,
            "propertyType": "APARTMENT",
            "address": "123 Main St",
            "longitude": -86.78,
            "latitude": 36.16,
        }
    )

    assert prop is not None
    assert prop.detail_url == "https://zillow.com/homedetails/1"
    assert prop.price == 2000
    assert prop.living_area == 950
    assert prop.property_type == "APARTMENT"
    assert prop.units is None


def test_to_property_keeps_original_units() -> None:
    prop = to_property(
        {
            "detailUrl": "https://zillow.com/b/building",
            "units": [{"price": 1800, "beds": 1}, {"price": 2400, "beds": 2, "bathrooms": 2}],
        }
    )

    assert prop is not None
    assert prop.units is not None
    assert [unit.price for unit in prop.units] == [1800, 2400]
    assert prop.units[0].bathrooms is None


def test_to_property_rejects_missing_or_invalid_detail_url(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        assert to_property({"price": 2000}) is None
        assert to_property({"detailUrl": 12345}) is None
        assert to_property({"detailUrl": ""}) is None

    assert "Dropping record" in caplog.text


def test_records_to_properties_drops_only_invalid_records(
    caplog: pytest.LogCaptureFixture,
) -> None:
    records = [
        {"detailUrl": "https://zillow.com/1", "price": 2000},
        {"price": 2100},
        {"detailUrl": "https://zillow.com/3", "price": "not-a-number"},
        {"detailUrl": "https://zillow.com/4", "address": {"street": "Main"}},
    ]

    with caplog.at_level(logging.WARNING):
        properties = records_to_properties(records)

    assert [prop.detail_url for prop in properties] == [
        "https://zillow.com/1",
        "https://zillow.com/4",
    ]
    assert properties[1].address is None
    assert caplog.text.count("Dropping record") == 2


def test_records_to_properties_empty_input() -> None:
    assert records_to_properties([]) == []
