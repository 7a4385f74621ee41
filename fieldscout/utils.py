"""Utility functions for file I/O and counter record access."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('fieldscout.utils')


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file with optional schema validation.

    Args:
        path: Path to JSON file (str or Path object)
        schema: Optional Pydantic model to validate against

    Returns:
        Parsed JSON (validated if schema provided)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        ValueError: If schema validation fails

    Example:
        from fieldscout.schemas import SeasonConfig
        season = load_json('data/seasons/2026.json', schema=SeasonConfig)
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema:
        try:
            validated = schema.model_validate(data)
            logger.debug(f'Schema validation passed for: {path}')
            return validated
        except ValidationError as e:
            logger.error(f'Schema validation failed for {path}: {e}')
            raise ValueError(f'Schema validation failed for {path}:\n{e}') from e

    return data


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
) -> None:
    """
    Save data as JSON file.

    Pydantic models are dumped with model_dump(); everything else must be
    JSON-serializable.

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written
    """
    path = Path(path)

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    json_data = data.model_dump() if isinstance(data, BaseModel) else data

    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(json_data, f, indent=indent, ensure_ascii=False)
        logger.debug(f'Saved JSON to: {path}')
    except TypeError as e:
        logger.error(f'Data is not JSON-serializable: {e}')
        raise TypeError(f'Data is not JSON-serializable: {e}') from e
    except OSError as e:
        logger.error(f'Failed to write file {path}: {e}')
        raise


def load_json_safe(
    path: Path | str,
    default: Any = None,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file, returning default instead of raising for missing or
    invalid files.
    """
    try:
        return load_json(path, schema=schema)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        return default


def validate_json_file(
    path: Path | str,
    schema: type[T],
) -> tuple[bool, str | None]:
    """
    Validate a JSON file against a schema.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        load_json(path, schema=schema)
        return True, None
    except FileNotFoundError:
        return False, f'File not found: {path}'
    except json.JSONDecodeError as e:
        return False, f'Invalid JSON: {e.msg} at position {e.pos}'
    except ValueError as e:
        return False, str(e)


def counter_value(record: Mapping | None, section: str, key: str) -> int | float:
    """
    Read a numeric counter from a counter record.

    Missing sections, missing keys, None and non-numeric values all read as 0.
    Booleans read as 0/1.
    """
    if not record:
        return 0
    value = (record.get(section) or {}).get(key, 0)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return 0


def flag_value(record: Mapping | None, section: str, key: str) -> bool:
    """Read a boolean toggle from a counter record; anything but True is False."""
    if not record:
        return False
    return (record.get(section) or {}).get(key) is True


def resolve_path(data: Mapping | None, path: str) -> int | float:
    """
    Resolve a dotted path ('auto.fuelScoredCount') to a number.

    Missing keys resolve to 0 so absent data still takes part in comparisons.
    """
    current: Any = data
    for part in path.split('.'):
        if not isinstance(current, Mapping) or part not in current:
            return 0
        current = current[part]
    if isinstance(current, bool):
        return int(current)
    if isinstance(current, (int, float)):
        return current
    return 0


def round_half_up(n: float, decimals: int = 1) -> float:
    """Round halves away from zero for positive values (2.25 -> 2.3)."""
    factor = 10 ** decimals
    return math.floor(n * factor + 0.5) / factor


def percent(count: int, total: int) -> int:
    """Whole-number percentage, 0 when total is 0."""
    if total <= 0:
        return 0
    return int(math.floor(count / total * 100 + 0.5))
