"""JSON file helpers shared by the config loader and the durable cache store."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('sleeper_live.utils')


def load_json(path: Path | str, schema: type[T] | None = None) -> Any | T:
    """
    Read a JSON document, optionally validating it into a pydantic model.

    Args:
        path: File to read
        schema: Model class to validate the document against

    Returns:
        The decoded document, or a schema instance when schema is given

    Raises:
        FileNotFoundError: The file does not exist
        json.JSONDecodeError: The file is not valid JSON
        ValueError: The document does not satisfy the schema
    """
    path = Path(path)
    text = path.read_text(encoding='utf-8')

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f'{path} is not valid JSON (line {e.lineno}, column {e.colno}): {e.msg}')
        raise

    if schema is None:
        return data

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error(f'{path} failed {schema.__name__} validation with {e.error_count()} errors')
        raise ValueError(f'{path} does not match {schema.__name__}:\n{e}') from e


def save_json(path: Path | str, data: Any, indent: int = 2) -> None:
    """
    Write data as JSON, replacing the target atomically.

    The document is written to a temp file in the target's directory and
    renamed over it, so a reader sees either the old or the new file.
    Pydantic models are dumped first. Parent directories are created.

    Raises:
        TypeError: data cannot be serialized
        OSError: the file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, BaseModel):
        data = data.model_dump()
    payload = json.dumps(data, indent=indent, ensure_ascii=False)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug(f'Wrote {path}')


def load_json_safe(
    path: Path | str,
    default: Any = None,
    schema: type[T] | None = None,
) -> Any | T:
    """
    load_json that returns default for a missing or undecodable file.

    Schema mismatches still raise ValueError.

    Example:
        entries = load_json_safe('data/win_prob_cache.json', default={})
    """
    try:
        return load_json(path, schema=schema)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError:
        logger.warning(f'Ignoring unreadable JSON in {path}')
        return default
