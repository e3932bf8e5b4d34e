"""Command-line entry point: ``refkit --input DIR --output DIR``."""

import argparse
import logging
import sys
from typing import List, Optional

from .adapters.csv_adapter import CsvAdapter
from .adapters.excel_adapter import ExcelAdapter
from .config import EXPORT_FORMATS, RefkitConfig
from .normalizer import CollectionNormalizer
from .parser import TableSetParser
from .schema import FILLER_COLLECTION_SCHEMAS, FILLER_INVERSE_RELATIONS

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refkit",
        description="Normalize exported collection tables into cross-referenced, slugged tables.",
    )
    parser.add_argument("--input", help="Directory of input tables (env: REFKIT_INPUT_DIR)")
    parser.add_argument("--output", help="Directory for output tables (env: REFKIT_OUTPUT_DIR)")
    parser.add_argument("--separator", help="Separator ending the collection name in file names")
    parser.add_argument("--format", choices=EXPORT_FORMATS, help="Output format")
    parser.add_argument(
        "--fill-listings",
        action="store_true",
        help="Fill Sites and Waterbodies listings from the referencing tables (env: REFKIT_FILL_LISTINGS)",
    )
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log unresolved references")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = RefkitConfig.from_env(args.env_file)
        if args.input:
            config.input_dir = args.input
        if args.output:
            config.output_dir = args.output
        if args.separator:
            config.name_separator = args.separator
        if args.format:
            config.export_format = args.format
        if args.fill_listings:
            config.fill_listings = True

        normalizer = None
        if config.fill_listings:
            normalizer = CollectionNormalizer(
                schemas=FILLER_COLLECTION_SCHEMAS,
                inverse_relations=FILLER_INVERSE_RELATIONS,
            )

        table_parser = TableSetParser(normalizer=normalizer, name_separator=config.name_separator)
        table_parser.register_adapter(CsvAdapter())
        table_parser.register_adapter(ExcelAdapter())

        written = table_parser.parse_and_export(
            config.input_dir, config.output_dir, format=config.export_format
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"refkit: {e}", file=sys.stderr)
        return 1

    for name, path in written.items():
        print(f"✓ {name}: {path}")
    print(f"✓ {len(written)} tables saved to {config.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
