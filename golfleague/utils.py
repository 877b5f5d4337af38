"""JSON document I/O with pydantic validation."""

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('golfleague.utils')


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Read a JSON document, optionally validating it against a schema.

    Args:
        path: Document path
        schema: Pydantic model the whole document must satisfy

    Returns:
        The validated model when schema is given, else the raw JSON value

    Raises:
        FileNotFoundError: path does not exist
        json.JSONDecodeError: document is not valid JSON
        ValueError: document does not match schema

    Example:
        from golfleague.schemas import RoundsFile
        rounds = load_json('data/rounds.json', schema=RoundsFile).rounds
    """
    path = Path(path)
    logger.debug(f'Reading {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema is None:
        return data

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error(f'{path} does not match {schema.__name__}: {e.error_count()} errors')
        raise ValueError(f'{path} does not match {schema.__name__}:\n{e}') from e


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
) -> None:
    """
    Write a JSON document atomically.

    The document goes to a hidden sibling file first and is then renamed over
    path, so readers see either the old or the new document.

    Args:
        path: Destination path
        data: Pydantic model or JSON-serializable value
        indent: Indentation (default: 2)
        create_dirs: Create missing parent directories (default: True)

    Raises:
        TypeError: data is not JSON-serializable
        OSError: the file cannot be written
    """
    path = Path(path)
    logger.debug(f'Writing {path}')

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    # mode='json' turns datetimes into ISO 8601 strings
    payload = data.model_dump(mode='json') if isinstance(data, BaseModel) else data

    tmp_path = path.with_name(f'.{path.name}.tmp')
    try:
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=indent, ensure_ascii=False)
        tmp_path.replace(path)
    except TypeError as e:
        tmp_path.unlink(missing_ok=True)
        logger.error(f'Cannot serialize {path}: {e}')
        raise TypeError(f'Data is not JSON-serializable: {e}') from e
    except OSError as e:
        logger.error(f'Failed to write {path}: {e}')
        raise


def load_json_safe(
    path: Path | str,
    default: Any = None,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Like load_json, but return default when the file does not exist yet.

    Malformed or invalid documents still raise.
    """
    path = Path(path)
    if not path.exists():
        return default
    return load_json(path, schema=schema)
