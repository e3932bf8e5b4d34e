"""
Slug registry: per-collection mapping from source values to slugs.

The registry is built once, collection by collection, and then frozen.
Projection only ever reads a frozen registry, so every slice a reference
may point into is complete before the first lookup.

Two distinct source values that slugify identically are not detected;
the value registered last wins the mapping entry.
"""

import logging
from typing import Dict, Iterable, Optional

from .schema import SLUG_FIELD, Collection
from .slugs import slugify

logger = logging.getLogger(__name__)


class SlugRegistry:
    """Collection name -> (trimmed source value -> slug)."""

    def __init__(self):
        self._slices: Dict[str, Dict[str, str]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "SlugRegistry":
        """End the build phase. Returns self for chaining."""
        self._frozen = True
        return self

    def register(self, collection_name: str, source_value: Optional[str]) -> str:
        """Register a source value and return its slug.

        Blank values are not stored and give an empty slug.

        Raises:
            RuntimeError: If the registry has already been frozen
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register into frozen registry (collection '{collection_name}')"
            )

        slice_ = self._slices.setdefault(collection_name, {})
        # Blank sources get an empty slug and no registry entry
        if not source_value or not source_value.strip():
            return ""

        slug = slugify(source_value)
        slice_[source_value.strip()] = slug
        return slug

    def lookup(self, collection_name: str, source_value: Optional[str]) -> Optional[str]:
        """Return the slug registered for a value, or None on a miss."""
        if not source_value:
            return None
        slice_ = self._slices.get(collection_name)
        if slice_ is None:
            return None
        return slice_.get(source_value.strip())

    def resolve(self, collection_name: str, source_value: Optional[str]) -> str:
        """Registry hit, else direct slugification of the raw value."""
        slug = self.lookup(collection_name, source_value)
        if slug is not None:
            return slug

        fallback = slugify(source_value)
        if fallback:
            logger.debug(
                f"Unresolved reference '{source_value}' in '{collection_name}' "
                f"-> fallback slug '{fallback}'"
            )
        return fallback

    def collections(self) -> Iterable[str]:
        return self._slices.keys()

    def slice_for(self, collection_name: str) -> Dict[str, str]:
        """Copy of one collection's mapping (empty if never built)."""
        return dict(self._slices.get(collection_name, {}))

    def __contains__(self, collection_name: str) -> bool:
        return collection_name in self._slices

    def __len__(self) -> int:
        return sum(len(slice_) for slice_ in self._slices.values())


def build_registry(collections: Iterable[Collection]) -> SlugRegistry:
    """Build and freeze the registry for every configured collection.

    Each record gets its own slug attached under ``"slug"`` (empty when the
    slug source is blank). Collections without a schema are skipped.

    Args:
        collections: Loaded collections, headers already trimmed

    Returns:
        Frozen SlugRegistry
    """
    registry = SlugRegistry()

    for collection in collections:
        if not collection.is_configured:
            logger.info(f"Skipping registry for pass-through table '{collection.name}'")
            continue

        source_field = collection.schema.slug_source
        for record in collection.records:
            record[SLUG_FIELD] = registry.register(collection.name, record.get(source_field))

        logger.info(
            f"Registered {len(registry.slice_for(collection.name))} slugs "
            f"for '{collection.name}' from '{source_field}'"
        )

    return registry.freeze()
