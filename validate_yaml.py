#!/usr/bin/env python3
"""Validate parts YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def find_duplicate_ids(data: dict) -> list[int]:
    """Part ids that appear more than once."""
    seen = set()
    duplicates = []
    for part in (data or {}).get("parts") or []:
        part_id = part.get("id") if isinstance(part, dict) else None
        if part_id in seen and part_id not in duplicates:
            duplicates.append(part_id)
        seen.add(part_id)
    return duplicates


def validate_parts_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single parts YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        for part_id in find_duplicate_ids(data):
            errors.append(f"Duplicate part id: {part_id}")
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main():
    """Validate the parts files given on the command line (default: parts.yaml)."""
    schema = load_schema()
    paths = [Path(p) for p in sys.argv[1:]] or [Path(__file__).parent / "parts.yaml"]

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"FAIL: {filepath.name}")
            print(f"  File not found: {filepath}")
            all_valid = False
            continue
        errors = validate_parts_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
