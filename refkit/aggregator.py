"""
Inverse relationship synthesis.

Some collections do not carry a listing of the records that point at them.
The aggregator rebuilds such listings by grouping the other collection on
its forward reference field.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .cell_parser import parse_multi_value
from .schema import Collection, InverseRelation

logger = logging.getLogger(__name__)

JOIN_SEPARATOR = "; "


def aggregate(
    records: Iterable[Mapping[str, str]],
    group_field: str,
    value_field: str,
    split_keys: bool = False,
) -> Dict[str, str]:
    """Group records on one field and join the distinct values of another.

    Group keys are trimmed, and records whose key is then empty or missing
    are skipped entirely. Each bucket is deduplicated, sorted and joined
    with ``"; "``.

    Example:
        >>> aggregate([{"k": "A", "v": "2"}, {"k": "A", "v": "1"}, {"k": "", "v": "9"}], "k", "v")
        {'A': '1; 2'}

    Args:
        records: Rows to scan
        group_field: Field holding the group key
        value_field: Field whose values are collected
        split_keys: Read the group cell as a multi-value reference cell and
            add the record to the bucket of every name it lists

    Returns:
        Mapping from group key to joined value string
    """
    buckets: Dict[str, List[str]] = {}
    for record in records:
        raw_key = record.get(group_field) or ""
        keys = parse_multi_value(raw_key) if split_keys else [raw_key.strip()]
        value = record.get(value_field)
        for key in keys:
            if key:
                buckets.setdefault(key, []).append(value if value is not None else "")

    return {
        key: JOIN_SEPARATOR.join(sorted(set(values)))
        for key, values in buckets.items()
    }


def apply_inverse_relation(
    relation: InverseRelation,
    target: Collection,
    source: Collection,
) -> int:
    """Fill ``relation.target_field`` on the target collection's records.

    Records that already hold a non-blank value keep it unless the
    relation is marked ``overwrite``.

    Returns:
        Number of records that received a non-empty listing
    """
    grouped = aggregate(
        source.records, relation.group_field, relation.value_field, split_keys=relation.split_group
    )

    filled = 0
    for record in target.records:
        if not relation.overwrite and (record.get(relation.target_field) or "").strip():
            continue
        key = (record.get(relation.match_field) or "").strip()
        record[relation.target_field] = grouped.get(key, "")
        if record[relation.target_field]:
            filled += 1

    return filled


def apply_inverse_relations(
    relations: Iterable[InverseRelation],
    collections: Mapping[str, Collection],
) -> None:
    """Apply each relation whose source and target collections are loaded."""
    for relation in relations:
        target: Optional[Collection] = collections.get(relation.target_collection)
        source: Optional[Collection] = collections.get(relation.source_collection)
        if target is None or source is None:
            logger.warning(
                f"Skipping relation {relation.source_collection} -> "
                f"{relation.target_collection}.{relation.target_field}: collection not loaded"
            )
            continue

        filled = apply_inverse_relation(relation, target, source)
        logger.info(
            f"Filled '{relation.target_field}' on {filled}/{len(target.records)} "
            f"{relation.target_collection} records from {relation.source_collection}"
        )
