"""CSV writing helpers that neutralize spreadsheet formula injection."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Any, Iterable, Iterator, Sequence

CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")


def csv_safe(value: str) -> str:
    if value and value.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{value}"
    return value


def serialize_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def write_csv_row(values: Sequence[Any]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([csv_safe(serialize_csv_value(value)) for value in values])
    return output.getvalue()


def write_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([csv_safe(serialize_csv_value(value)) for value in row])
    return output.getvalue()


def stream_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> Iterator[str]:
    yield write_csv_row(headers)
    for row in rows:
        yield write_csv_row(row)
