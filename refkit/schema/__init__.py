"""Collection schemas, reference targets and inverse relations."""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Target for reference fields with no known collection. No registry slice is
# ever built under this name, so every lookup against it misses.
UNKNOWN_COLLECTION = "Unknown"

# Name of the identifier field appended to every projected record
SLUG_FIELD = "slug"

# Reference field name -> collection it points at
REFERENCE_TARGETS: Dict[str, str] = {
    "Monitoring Organization": "Organizations",
    "Monitoring Sites": "Stations",
    "Monitoring Sites (from Waterbodies)": "Stations",
    "Waterbodies": "Waterbodies",
    "Watersheds": "Watersheds",
    "Sites": "Stations",
    "Waterbody": "Waterbodies",
    "Watersheds (from Waterbody) 2": "Watersheds",
}


def target_collection_of(
    field_name: str,
    reference_targets: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the collection a reference field points at, or ``UNKNOWN_COLLECTION``."""
    targets = REFERENCE_TARGETS if reference_targets is None else reference_targets
    return targets.get(field_name, UNKNOWN_COLLECTION)


class FieldKind(Enum):
    """How a kept field is written to the output record."""
    PLAIN = auto()       # Raw text passed through
    SINGLE_REF = auto()  # Exactly one reference, resolved to a slug
    MULTI_REF = auto()   # Zero or more references, resolved and joined with ";"


@dataclass(frozen=True)
class FieldSpec:
    """A kept field with its kind and, for references, its target collection."""
    name: str
    kind: FieldKind = FieldKind.PLAIN
    target: Optional[str] = None

    @property
    def is_reference(self) -> bool:
        return self.kind is not FieldKind.PLAIN


class CollectionSchema:
    """Projection schema for one collection.

    Field kinds are decided here, once, when the schema is built. Rows are
    then projected by walking ``fields`` without re-checking set membership.

    Args:
        keep: Ordered field names to emit
        slug_source: Field whose value derives the record's slug
        single_ref_fields: Fields holding exactly one reference
        multi_ref_fields: Fields holding zero or more references
        reference_targets: Override for the field -> collection table

    Raises:
        ValueError: If a field is declared both single- and multi-valued
    """

    def __init__(
        self,
        keep: Iterable[str],
        slug_source: str,
        single_ref_fields: Iterable[str] = (),
        multi_ref_fields: Iterable[str] = (),
        reference_targets: Optional[Mapping[str, str]] = None,
    ):
        # Ordered and duplicate-free
        self.keep: Tuple[str, ...] = tuple(dict.fromkeys(keep))
        self.slug_source = slug_source
        self.single_ref_fields = frozenset(single_ref_fields)
        self.multi_ref_fields = frozenset(multi_ref_fields)

        overlap = self.single_ref_fields & self.multi_ref_fields
        if overlap:
            raise ValueError(
                f"Fields declared as both single and multi reference: {sorted(overlap)}"
            )

        self.fields: List[FieldSpec] = []
        for name in self.keep:
            if name in self.multi_ref_fields:
                kind = FieldKind.MULTI_REF
            elif name in self.single_ref_fields:
                kind = FieldKind.SINGLE_REF
            else:
                self.fields.append(FieldSpec(name))
                continue

            target = target_collection_of(name, reference_targets)
            if target == UNKNOWN_COLLECTION:
                logger.warning(
                    f"Reference field '{name}' has no known target collection; "
                    f"values will be slugified directly"
                )
            self.fields.append(FieldSpec(name, kind, target))

    @property
    def output_headers(self) -> List[str]:
        """Column order of projected records: kept fields, then the slug."""
        headers = list(self.keep)
        if SLUG_FIELD not in headers:
            headers.append(SLUG_FIELD)
        return headers

    def field_kind(self, name: str) -> FieldKind:
        for spec in self.fields:
            if spec.name == name:
                return spec.kind
        return FieldKind.PLAIN

    def __repr__(self) -> str:
        return f"CollectionSchema(slug_source={self.slug_source!r}, keep={list(self.keep)!r})"


@dataclass(frozen=True)
class InverseRelation:
    """
    Synthesizes a listing field on one collection from the other side.

    Every record of ``source_collection`` is grouped on ``group_field`` and
    contributes its ``value_field``. Each record of ``target_collection``
    then receives, in ``target_field``, the joined bucket whose key equals
    its own ``match_field`` value.

    With ``split_group`` the group cell is read as a multi-value reference
    cell, and the record joins the bucket of every name it lists. With
    ``overwrite`` existing listings are replaced rather than kept.

    Example: giving each Organization its Sites by grouping Stations on
    "Monitoring Organization" and collecting each station's slug.
    """
    target_collection: str
    target_field: str
    source_collection: str
    group_field: str
    match_field: str
    value_field: str = SLUG_FIELD
    split_group: bool = False
    overwrite: bool = False


@dataclass
class Collection:
    """One named table: its records and, when configured, its schema.

    A collection without a schema is carried as a pass-through table and
    takes no part in slug or reference handling.
    """
    name: str
    records: List[Dict[str, str]] = field(default_factory=list)
    schema: Optional[CollectionSchema] = None

    @property
    def is_configured(self) -> bool:
        return self.schema is not None


COLLECTION_SCHEMAS: Dict[str, CollectionSchema] = {
    "Stations": CollectionSchema(
        keep=[
            "SiteID",
            "Site Name",
            "Latitude",
            "Longitude",
            "Site Description",
            "Monitoring Info",
            "Waterbody",
            "Watersheds (from Waterbody) 2",
            "Monitoring Organization",
            "Most Recent Ecoli Reading",
            "Most Recent Sample Date",
        ],
        slug_source="SiteID",
        single_ref_fields=["Waterbody", "Watersheds (from Waterbody) 2"],
        multi_ref_fields=["Monitoring Organization"],
    ),
    "Waterbodies": CollectionSchema(
        keep=["Name", "Watersheds", "Monitoring Sites"],
        slug_source="Name",
        single_ref_fields=["Watersheds"],
        multi_ref_fields=["Monitoring Sites"],
    ),
    "Watersheds": CollectionSchema(
        keep=["Name", "Waterbodies", "Monitoring Sites (from Waterbodies)"],
        slug_source="Name",
        multi_ref_fields=["Waterbodies", "Monitoring Sites (from Waterbodies)"],
    ),
    "Organizations": CollectionSchema(
        keep=[
            "Organization Name",
            "Logo",
            "Organization Website",
            "Organization Description",
            "Monitoring Sites",
        ],
        slug_source="Organization Name",
        multi_ref_fields=["Monitoring Sites"],
    ),
}

# All default collections carry their listing fields natively
DEFAULT_INVERSE_RELATIONS: List[InverseRelation] = []


def _with_listings(schema: CollectionSchema, listings: List[str]) -> CollectionSchema:
    # Listing fields hold slugs already, so they are emitted as plain text
    return CollectionSchema(
        keep=list(schema.keep) + listings,
        slug_source=schema.slug_source,
        single_ref_fields=schema.single_ref_fields - set(listings),
        multi_ref_fields=schema.multi_ref_fields - set(listings),
    )


# Schemas used when listings are filled from the other side of each relation
FILLER_COLLECTION_SCHEMAS: Dict[str, CollectionSchema] = {
    "Stations": COLLECTION_SCHEMAS["Stations"],
    "Waterbodies": _with_listings(COLLECTION_SCHEMAS["Waterbodies"], ["Sites"]),
    "Watersheds": _with_listings(COLLECTION_SCHEMAS["Watersheds"], ["Waterbodies", "Sites"]),
    "Organizations": _with_listings(COLLECTION_SCHEMAS["Organizations"], ["Sites"]),
}

FILLER_INVERSE_RELATIONS: List[InverseRelation] = [
    InverseRelation(
        target_collection="Organizations",
        target_field="Sites",
        source_collection="Stations",
        group_field="Monitoring Organization",
        match_field="Organization Name",
        split_group=True,
        overwrite=True,
    ),
    InverseRelation(
        target_collection="Waterbodies",
        target_field="Sites",
        source_collection="Stations",
        group_field="Waterbody",
        match_field="Name",
        overwrite=True,
    ),
    InverseRelation(
        target_collection="Watersheds",
        target_field="Sites",
        source_collection="Stations",
        group_field="Watersheds (from Waterbody) 2",
        match_field="Name",
        overwrite=True,
    ),
    InverseRelation(
        target_collection="Watersheds",
        target_field="Waterbodies",
        source_collection="Waterbodies",
        group_field="Watersheds",
        match_field="Name",
        overwrite=True,
    ),
]

__all__ = [
    "UNKNOWN_COLLECTION",
    "SLUG_FIELD",
    "REFERENCE_TARGETS",
    "target_collection_of",
    "FieldKind",
    "FieldSpec",
    "CollectionSchema",
    "InverseRelation",
    "Collection",
    "COLLECTION_SCHEMAS",
    "DEFAULT_INVERSE_RELATIONS",
    "FILLER_COLLECTION_SCHEMAS",
    "FILLER_INVERSE_RELATIONS",
]
