"""
Dataset loading for evaluation runs.

Supported files:
- ``.json`` holding a list of records, or an object of named splits
  (``{"train": [...], "test": [...]}``)
- ``.jsonl`` with one record per line

A record either carries an ``input`` key, or its input is assembled from
``input_fields`` (e.g. ``("user", "context")``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Sequence

from loguru import logger

from scorecard_core.domain.exceptions import DatasetError

from .base import Example


def _read_records(path: Path, split: str | None) -> list[Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DatasetError(f"Dataset file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise DatasetError(f"Dataset {path} is not valid UTF-8") from e

    if path.suffix == ".jsonl":
        if split is not None:
            raise DatasetError(f"JSONL dataset {path} has no splits")
        records = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise DatasetError(f"{path}:{line_no}: invalid JSON: {e.msg}") from e
        return records

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DatasetError(f"{path}: invalid JSON: {e.msg}") from e

    if isinstance(data, list):
        if split is not None:
            raise DatasetError(f"Dataset {path} has no splits")
        return data
    if isinstance(data, dict):
        if split is None:
            raise DatasetError(f"Dataset {path} has splits {sorted(data)}; choose one")
        if split not in data:
            raise DatasetError(f"Split '{split}' not in {path} (available: {sorted(data)})")
        return data[split]
    raise DatasetError(f"Dataset {path} must contain a list or an object of splits")


def record_to_example(
    record: Any,
    index: int,
    input_fields: Sequence[str] | None = None,
    expected_field: str = "expected",
) -> Example:
    """
    Convert one raw record to an Example.

    Raises:
        DatasetError: If the record is not an object or has no input.
    """
    if not isinstance(record, Mapping):
        raise DatasetError(f"Record {index} is not an object")

    if input_fields:
        missing = [f for f in input_fields if f not in record]
        if missing:
            raise DatasetError(f"Record {index} is missing input fields {missing}")
        value: Any = {f: record[f] for f in input_fields}
    elif "input" in record:
        value = record["input"]
    else:
        raise DatasetError(f"Record {index} has no input")

    used = set(input_fields or ("input",)) | {expected_field, "metadata"}
    raw_metadata = record.get("metadata") or {}
    if not isinstance(raw_metadata, Mapping):
        raise DatasetError(f"Record {index} has non-object metadata: {raw_metadata!r}")
    metadata = dict(raw_metadata)
    metadata.update({k: v for k, v in record.items() if k not in used})

    return Example(
        input=value,
        expected=record.get(expected_field),
        metadata=metadata or None,
    )


def load_dataset(
    path: str | Path,
    *,
    split: str | None = None,
    input_fields: Sequence[str] | None = None,
    expected_field: str = "expected",
) -> tuple[Example, ...]:
    """
    Load a dataset file into an immutable tuple of Examples.

    Args:
        path: JSON or JSONL file.
        split: Named split for JSON files holding an object of splits.
        input_fields: Record fields assembled into a dict input.
        expected_field: Record field holding the expected value.

    Raises:
        DatasetError: Unreadable file, unknown split or malformed record.
    """
    path = Path(path)
    records = _read_records(path, split)
    examples = tuple(
        record_to_example(r, i, input_fields=input_fields, expected_field=expected_field)
        for i, r in enumerate(records)
    )
    logger.info(f"Loaded {len(examples)} examples from {path.name}" + (f" [{split}]" if split else ""))
    return examples
