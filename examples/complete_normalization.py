#!/usr/bin/env python3
"""Example: normalize a directory of collection exports.

Reads every CSV/Excel export in the input directory, gives each record a
slug, fills the Sites and Waterbodies listings, resolves reference
fields, and writes one table per collection.
"""

from refkit import (
    FILLER_COLLECTION_SCHEMAS,
    FILLER_INVERSE_RELATIONS,
    CollectionNormalizer,
    TableSetParser,
)
from refkit.adapters.csv_adapter import CsvAdapter
from refkit.adapters.excel_adapter import ExcelAdapter


def normalize_directory(input_dir: str, output_dir: str):
    """Normalize all tables in ``input_dir`` into ``output_dir``.
    
    Args:
        input_dir: Directory holding the exported tables
        output_dir: Directory for the normalized tables
    """
    # Organizations, Waterbodies and Watersheds get their listings filled
    normalizer = CollectionNormalizer(
        schemas=FILLER_COLLECTION_SCHEMAS,
        inverse_relations=FILLER_INVERSE_RELATIONS,
    )
    
    parser = TableSetParser(normalizer=normalizer)
    parser.register_adapter(CsvAdapter())
    parser.register_adapter(ExcelAdapter())
    
    result = parser.parse(input_dir)
    written = parser.export_result(result, output_dir)
    
    for name, path in written.items():
        print(f"✓ {name}: {path}")
    
    report = normalizer.get_resolution_report(
        parser.read_directory(input_dir), result.registry
    )
    print(f"\nReference Resolution Report:")
    for collection, fields in report["unresolved"].items():
        for field_name, values in fields.items():
            print(f"  {collection}.{field_name}: {len(values)} unresolved ({', '.join(values[:5])})")
    
    return result


if __name__ == "__main__":
    import sys
    
    if len(sys.argv) < 3:
        print("Usage: python complete_normalization.py <input_dir> <output_dir>")
        print("\nExample:")
        print("  python complete_normalization.py ./input ./output")
        sys.exit(1)
    
    normalize_directory(sys.argv[1], sys.argv[2])
