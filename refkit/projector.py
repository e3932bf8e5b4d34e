"""Schema-driven projection of records into output records."""

import logging
from typing import Dict, List, Mapping, Optional

from .cell_parser import parse_multi_value
from .registry import SlugRegistry
from .schema import SLUG_FIELD, CollectionSchema, FieldKind, FieldSpec
from .slugs import slugify

logger = logging.getLogger(__name__)

MULTI_REF_SEPARATOR = ";"


class FieldProjector:
    """Projects records of any collection against a frozen registry.

    Args:
        registry: Completed slug registry

    Raises:
        ValueError: If the registry is still in its build phase
    """

    def __init__(self, registry: SlugRegistry):
        if not registry.frozen:
            raise ValueError("FieldProjector requires a frozen SlugRegistry")
        self.registry = registry

    def resolve_single(self, raw: Optional[str], target: str) -> str:
        ref = (raw or "").strip()
        if not ref:
            return ""
        return self.registry.resolve(target, ref)

    def resolve_multi(self, raw: Optional[str], target: str) -> str:
        # Source order is kept; duplicates are not removed
        slugs = [self.registry.resolve(target, token) for token in parse_multi_value(raw)]
        return MULTI_REF_SEPARATOR.join(slug for slug in slugs if slug)

    def project_field(self, record: Mapping[str, str], spec: FieldSpec) -> str:
        raw = record.get(spec.name)
        if spec.kind is FieldKind.MULTI_REF:
            return self.resolve_multi(raw, spec.target)
        if spec.kind is FieldKind.SINGLE_REF:
            return self.resolve_single(raw, spec.target)
        return raw if raw is not None else ""

    def project(self, record: Mapping[str, str], schema: CollectionSchema) -> Dict[str, str]:
        """Build the output record for one input record.

        Kept fields come first in schema order, then ``slug``, which is always
        derived from the slug source even when ``slug`` is also a kept field.
        The input record is not modified.
        """
        output = {spec.name: self.project_field(record, spec) for spec in schema.fields}
        output[SLUG_FIELD] = slugify(record.get(schema.slug_source) or "")
        return output

    def project_collection(
        self,
        records: List[Mapping[str, str]],
        schema: CollectionSchema,
    ) -> List[Dict[str, str]]:
        return [self.project(record, schema) for record in records]
