"""Normalization pipeline: load, register slugs, synthesize relations, project."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .aggregator import apply_inverse_relations
from .cell_parser import parse_multi_value
from .projector import FieldProjector
from .registry import SlugRegistry, build_registry
from .schema import (
    COLLECTION_SCHEMAS,
    DEFAULT_INVERSE_RELATIONS,
    Collection,
    CollectionSchema,
    FieldKind,
    InverseRelation,
)

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    """Output of one pipeline run."""
    tables: Dict[str, List[Dict[str, str]]] = field(default_factory=dict)
    passthrough: Dict[str, List[Dict[str, str]]] = field(default_factory=dict)
    headers: Dict[str, List[str]] = field(default_factory=dict)
    registry: Optional[SlugRegistry] = None

    def __len__(self) -> int:
        return len(self.tables) + len(self.passthrough)


class CollectionNormalizer:
    """Normalizer that cross-references a set of collection tables.

    Every configured collection gets a slug per record, any configured
    inverse relations are synthesized, and every reference field is
    resolved to slugs.
    """

    def __init__(
        self,
        schemas: Optional[Mapping[str, CollectionSchema]] = None,
        inverse_relations: Optional[Iterable[InverseRelation]] = None,
    ):
        """Initialize the normalizer.

        Args:
            schemas: Collection name -> schema (defaults to COLLECTION_SCHEMAS)
            inverse_relations: Listing fields to synthesize before projection

        Raises:
            ValueError: If a relation fills a field that its target schema
                declares as a reference field
        """
        self.schemas = dict(COLLECTION_SCHEMAS if schemas is None else schemas)
        self.inverse_relations = list(
            DEFAULT_INVERSE_RELATIONS if inverse_relations is None else inverse_relations
        )

        for relation in self.inverse_relations:
            schema = self.schemas.get(relation.target_collection)
            if schema is not None and schema.field_kind(relation.target_field) is not FieldKind.PLAIN:
                raise ValueError(
                    f"Listing field '{relation.target_field}' of '{relation.target_collection}' "
                    f"is declared as a reference field; declare it as a plain field"
                )

    def normalize_row(self, row: Mapping[Any, Any]) -> Dict[str, str]:
        """Trim header whitespace and coerce values to strings.

        Args:
            row: Raw row as read by an adapter

        Returns:
            New dictionary; columns without a header are dropped
        """
        normalized = {}
        for key, value in row.items():
            if key is None:
                continue
            normalized[str(key).strip()] = str(value) if value is not None else ""
        return normalized

    def load_collection(self, name: str, raw_rows: Iterable[Mapping[Any, Any]]) -> Collection:
        records = [self.normalize_row(row) for row in raw_rows]
        collection = Collection(name=name, records=records, schema=self.schemas.get(name))
        logger.info(
            f"Loaded {len(records)} rows for '{name}'"
            + ("" if collection.is_configured else " (pass-through)")
        )
        return collection

    def normalize(self, raw_tables: Mapping[str, Iterable[Mapping[Any, Any]]]) -> NormalizationResult:
        """Run the whole pipeline over a set of named tables.

        Args:
            raw_tables: Collection name -> raw rows

        Returns:
            NormalizationResult with projected tables for configured
            collections and header-trimmed rows for the rest
        """
        collections = {
            name: self.load_collection(name, rows) for name, rows in raw_tables.items()
        }

        # Registry must be complete before any reference is resolved
        registry = build_registry(collections.values())
        apply_inverse_relations(self.inverse_relations, collections)

        projector = FieldProjector(registry)
        result = NormalizationResult(registry=registry)
        for name, collection in collections.items():
            if not collection.is_configured:
                result.passthrough[name] = collection.records
                result.headers[name] = _headers_of(collection.records)
                continue

            result.tables[name] = projector.project_collection(collection.records, collection.schema)
            result.headers[name] = collection.schema.output_headers
            logger.info(f"Projected {len(result.tables[name])} records for '{name}'")

        return result

    def get_resolution_report(
        self,
        raw_tables: Mapping[str, Iterable[Mapping[Any, Any]]],
        registry: SlugRegistry,
    ) -> Dict[str, Any]:
        """Report reference values that missed the registry.

        Misses are still emitted as direct slugs; this lists them so that
        spelling differences between tables can be fixed at the source.

        Returns:
            ``{"unresolved": {collection: {field: [values]}}, "missing_slug_source": {collection: count}}``
        """
        unresolved: Dict[str, Dict[str, List[str]]] = {}
        missing_slug: Dict[str, int] = {}

        for name, rows in raw_tables.items():
            schema = self.schemas.get(name)
            if schema is None:
                continue

            for row in rows:
                record = self.normalize_row(row)
                if not (record.get(schema.slug_source) or "").strip():
                    missing_slug[name] = missing_slug.get(name, 0) + 1

                for spec in schema.fields:
                    if spec.kind is FieldKind.MULTI_REF:
                        values = parse_multi_value(record.get(spec.name))
                    elif spec.kind is FieldKind.SINGLE_REF:
                        value = (record.get(spec.name) or "").strip()
                        values = [value] if value else []
                    else:
                        continue

                    for value in values:
                        if registry.lookup(spec.target, value) is None:
                            misses = unresolved.setdefault(name, {}).setdefault(spec.name, [])
                            if value not in misses:
                                misses.append(value)

        return {"unresolved": unresolved, "missing_slug_source": missing_slug}


def _headers_of(records: List[Dict[str, str]]) -> List[str]:
    headers: Dict[str, None] = {}
    for record in records:
        headers.update(dict.fromkeys(record))
    return list(headers)
