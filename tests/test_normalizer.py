"""Test suite for the normalization pipeline."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path to import refkit
sys.path.insert(0, str(Path(__file__).parent.parent))

from refkit import (
    FILLER_COLLECTION_SCHEMAS,
    FILLER_INVERSE_RELATIONS,
    CollectionNormalizer,
    CollectionSchema,
    InverseRelation,
    SlugRegistry,
)


def _site_org_normalizer():
    schemas = {
        "Sites": CollectionSchema(
            keep=["Slug", "Organization"],
            slug_source="Slug",
            single_ref_fields=["Organization"],
            reference_targets={"Organization": "Organizations"},
        ),
        "Organizations": CollectionSchema(keep=["Name", "Sites"], slug_source="Name"),
    }
    relation = InverseRelation(
        target_collection="Organizations",
        target_field="Sites",
        source_collection="Sites",
        group_field="Organization",
        match_field="Name",
        value_field="Slug",
    )
    return CollectionNormalizer(schemas=schemas, inverse_relations=[relation])


def test_end_to_end_inverse_relation():
    """Organizations receive their Sites from the Sites table."""
    normalizer = _site_org_normalizer()
    result = normalizer.normalize({
        "Sites": [
            {"Slug": "s1", "Organization": "Acme River Watch"},
            {"Slug": "s2", "Organization": "Acme River Watch"},
        ],
        "Organizations": [{"Name": "Acme River Watch"}],
    })

    assert result.tables["Organizations"] == [
        {"Name": "Acme River Watch", "Sites": "s1; s2", "slug": "acme-river-watch"}
    ]
    assert result.tables["Sites"] == [
        {"Slug": "s1", "Organization": "acme-river-watch", "slug": "s1"},
        {"Slug": "s2", "Organization": "acme-river-watch", "slug": "s2"},
    ]
    assert result.registry.frozen


def test_default_schemas_pipeline():
    """Stations, Organizations and a pass-through table through default schemas."""
    normalizer = CollectionNormalizer()
    raw_tables = {
        "Stations": [
            {
                " SiteID ": "BC-01",
                "Site Name ": "Bear Creek at Main",
                "Latitude": "35.1",
                "Waterbody": "Bear Creek",
                "Monitoring Organization": 'Acme River Watch, "Friends of the Creek, Inc."',
            },
            {" SiteID ": "", "Site Name ": "Unnamed", "Latitude": None},
        ],
        "Organizations": [
            {"Organization Name": "Acme River Watch", "Monitoring Sites": "BC-01"},
            {"Organization Name": "Friends of the Creek, Inc.", "Monitoring Sites": ""},
        ],
        "Notes": [{" Title ": "Read me", None: "stray"}],
    }

    result = normalizer.normalize(raw_tables)

    first, second = result.tables["Stations"]
    assert first["SiteID"] == "BC-01"
    assert first["Site Name"] == "Bear Creek at Main"
    assert first["Waterbody"] == "bear-creek"
    assert first["Monitoring Organization"] == "acme-river-watch;friends-of-the-creek-inc"
    assert first["Longitude"] == ""
    assert first["slug"] == "bc-01"
    assert second["slug"] == ""
    assert second["Latitude"] == ""

    orgs = result.tables["Organizations"]
    assert orgs[0]["Monitoring Sites"] == "bc-01"
    assert orgs[1]["slug"] == "friends-of-the-creek-inc"

    assert result.passthrough["Notes"] == [{"Title": "Read me"}]
    assert result.headers["Notes"] == ["Title"]
    assert result.headers["Stations"][-1] == "slug"
    assert len(result) == 3


def test_normalize_row_trims_headers():
    normalizer = CollectionNormalizer()
    row = normalizer.normalize_row({"  Name  ": "Bear Creek", "Count": 3, "Empty": None, None: "x"})
    assert row == {"Name": "Bear Creek", "Count": "3", "Empty": ""}


def test_resolution_report():
    normalizer = CollectionNormalizer()
    raw_tables = {
        "Stations": [
            {"SiteID": "BC-01", "Waterbody": "Bear Creek", "Monitoring Organization": "Acme, Ghost Org"},
            {"SiteID": "", "Waterbody": "Bear Creek"},
        ],
        "Organizations": [{"Organization Name": "Acme"}],
    }
    result = normalizer.normalize(raw_tables)
    report = normalizer.get_resolution_report(raw_tables, result.registry)

    assert report["unresolved"]["Stations"]["Monitoring Organization"] == ["Ghost Org"]
    assert report["unresolved"]["Stations"]["Waterbody"] == ["Bear Creek"]
    assert report["missing_slug_source"] == {"Stations": 1}
    assert "Organizations" not in report["unresolved"]


def test_reference_to_later_collection_hits_registry(monkeypatch):
    """Stations come first but still resolve against the Organizations registry."""
    lookups = []
    original_lookup = SlugRegistry.lookup

    def recording_lookup(self, collection_name, source_value):
        slug = original_lookup(self, collection_name, source_value)
        lookups.append((collection_name, source_value, slug))
        return slug

    monkeypatch.setattr(SlugRegistry, "lookup", recording_lookup)

    result = CollectionNormalizer().normalize({
        "Stations": [
            {"SiteID": "BC-01", "Monitoring Organization": "  Acme River Watch , Ghost Org"},
        ],
        "Organizations": [{"Organization Name": " Acme River Watch "}],
    })

    assert result.tables["Stations"][0]["Monitoring Organization"] == "acme-river-watch;ghost-org"
    assert ("Organizations", "Acme River Watch", "acme-river-watch") in lookups
    assert ("Organizations", "Ghost Org", None) in lookups


def test_listing_declared_as_reference_rejected():
    schemas = {
        "Stations": CollectionSchema(keep=["SiteID"], slug_source="SiteID"),
        "Organizations": CollectionSchema(
            keep=["Organization Name", "Sites"],
            slug_source="Organization Name",
            multi_ref_fields=["Sites"],
        ),
    }
    relation = InverseRelation(
        target_collection="Organizations",
        target_field="Sites",
        source_collection="Stations",
        group_field="Monitoring Organization",
        match_field="Organization Name",
    )
    with pytest.raises(ValueError):
        CollectionNormalizer(schemas=schemas, inverse_relations=[relation])

    # Default Watersheds schema resolves "Waterbodies" as references
    with pytest.raises(ValueError):
        CollectionNormalizer(inverse_relations=FILLER_INVERSE_RELATIONS)


def test_fill_listings_pipeline():
    """Listings are filled from Stations and Waterbodies."""
    normalizer = CollectionNormalizer(
        schemas=FILLER_COLLECTION_SCHEMAS,
        inverse_relations=FILLER_INVERSE_RELATIONS,
    )
    result = normalizer.normalize({
        "Stations": [
            {
                "SiteID": "BC-01",
                "Waterbody": "Bear Creek",
                "Watersheds (from Waterbody) 2": "Upper Basin",
                "Monitoring Organization": 'Acme River Watch, "Friends of the Creek, Inc."',
            },
            {
                "SiteID": "BC-02",
                "Waterbody": "Bear Creek",
                "Watersheds (from Waterbody) 2": "Upper Basin",
                "Monitoring Organization": "Acme River Watch",
            },
        ],
        "Waterbodies": [
            {"Name": "Bear Creek", "Watersheds": "Upper Basin"},
            {"Name": "Mill Pond", "Watersheds": "Upper Basin"},
        ],
        "Watersheds": [{"Name": "Upper Basin", "Waterbodies": "Old Value"}],
        "Organizations": [
            {"Organization Name": "Acme River Watch"},
            {"Organization Name": "Friends of the Creek, Inc."},
        ],
    })

    orgs = result.tables["Organizations"]
    assert orgs[0]["Sites"] == "bc-01; bc-02"
    assert orgs[1]["Sites"] == "bc-01"

    waterbodies = result.tables["Waterbodies"]
    assert waterbodies[0]["Sites"] == "bc-01; bc-02"
    assert waterbodies[0]["Watersheds"] == "upper-basin"
    assert waterbodies[1]["Sites"] == ""

    watershed = result.tables["Watersheds"][0]
    assert watershed["Sites"] == "bc-01; bc-02"
    assert watershed["Waterbodies"] == "bear-creek; mill-pond"
    assert result.headers["Watersheds"] == [
        "Name", "Waterbodies", "Monitoring Sites (from Waterbodies)", "Sites", "slug"
    ]
