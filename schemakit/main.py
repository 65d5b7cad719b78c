"""
schemakit command line entry point.
Validates a JSON or YAML instance file against a JSON or YAML schema file.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

from schemakit.config import get_default_config, load_config
from schemakit.engine import ValidationEngine
from schemakit.exceptions import SchemaKitError, ValidationFailureError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def load_document(path: str | Path) -> Any:
    """
    Load a JSON or YAML document.

    Args:
        path: File path; ".json" files are parsed as JSON, anything else as YAML

    Returns:
        Parsed document

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    with open(path, 'r') as f:
        try:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemakit",
        description="Validate a JSON/YAML instance against a schema",
    )
    parser.add_argument("schema", help="Schema file (JSON or YAML)")
    parser.add_argument("instance", help="Instance file (JSON or YAML)")
    parser.add_argument("--config", help="Engine configuration file (YAML)")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failure")
    parser.add_argument("--skip-syntax", action="store_true", help="Trust the schema, skip syntax checks")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the schemakit CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args.config) if args.config else get_default_config()
        if args.skip_syntax:
            config = config.model_copy(update={"skip_syntax": True})

        schema = load_document(args.schema)
        instance = load_document(args.instance)

        engine = ValidationEngine(config)
        report = engine.validate(schema, instance, fail_fast=args.fail_fast or None)
    except ValidationFailureError as e:
        print(f"INVALID: {e.validation_message}")
        return EXIT_INVALID
    except (FileNotFoundError, ValueError, SchemaKitError) as e:
        logger.error(f"{e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    if report.is_success:
        print(f"VALID: {args.instance}")
        return EXIT_OK

    for message in report:
        print(f"INVALID: {message}")
    return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
