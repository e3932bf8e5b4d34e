from .slugs import slugify
from .cell_parser import parse_multi_value
from .registry import SlugRegistry, build_registry
from .aggregator import aggregate, apply_inverse_relations
from .projector import FieldProjector
from .normalizer import CollectionNormalizer, NormalizationResult
from .parser import TableSetParser, collection_name_of
from .schema import (
    COLLECTION_SCHEMAS,
    FILLER_COLLECTION_SCHEMAS,
    FILLER_INVERSE_RELATIONS,
    REFERENCE_TARGETS,
    Collection,
    CollectionSchema,
    FieldKind,
    InverseRelation,
    target_collection_of,
)

__all__ = [
    "slugify",
    "parse_multi_value",
    "SlugRegistry",
    "build_registry",
    "aggregate",
    "apply_inverse_relations",
    "FieldProjector",
    "CollectionNormalizer",
    "NormalizationResult",
    "TableSetParser",
    "collection_name_of",
    "COLLECTION_SCHEMAS",
    "FILLER_COLLECTION_SCHEMAS",
    "FILLER_INVERSE_RELATIONS",
    "REFERENCE_TARGETS",
    "Collection",
    "CollectionSchema",
    "FieldKind",
    "InverseRelation",
    "target_collection_of",
]
