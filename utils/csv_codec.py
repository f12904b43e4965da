"""CSV codec for the roster files.

`decode` / `encode` are the strict pair used by the record stores; they always
speak in terms of a fixed column list so the header order never depends on
whatever keys the first record happens to carry.

`parse_csv_content` is the forgiving, header-driven variant used when the
client falls back to reading a static CSV asset: it trims everything and turns
an ``isTrainer`` column into a real boolean.

Quoting follows RFC 4180 (the stdlib ``csv`` dialect), so values containing
commas, quotes or newlines survive a write/read cycle.

Malformed rows are handled the same way everywhere:
- a row with fewer fields than the header yields a partially populated record
  (missing trailing columns become ``""``);
- a row with more fields than the header keeps the header columns and drops
  the surplus.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

__all__ = ["CSVDecodeError", "CsvParseResult", "decode", "encode", "parse_csv_content"]

BOOLEAN_FIELDS = ("isTrainer",)


class CSVDecodeError(ValueError):
    """Raised when CSV text is structurally broken (e.g. an unterminated quote)."""


@dataclass
class CsvParseResult:
    data: List[dict] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def _is_blank(row: List[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def _read_rows(text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), strict=True)
    try:
        return [row for row in reader if not _is_blank(row)]
    except csv.Error as e:
        raise CSVDecodeError(f"line {reader.line_num}: {e}") from e


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def decode(text: Optional[str], columns: Optional[Sequence[str]] = None) -> List[Dict[str, str]]:
    """Decode CSV text into an ordered list of records.

    The first non-blank line names the columns; every later line is one record
    with values assigned positionally to those names. Each name in `columns`
    is guaranteed to be present in every record (``""`` when the file lacks
    it). Empty input decodes to ``[]``.
    """
    if text is None or not text.strip():
        return []
    rows = _read_rows(text)
    if not rows:
        return []
    header = [h.strip() for h in rows[0]]
    records: List[Dict[str, str]] = []
    for row in rows[1:]:
        rec = {name: (row[i] if i < len(row) else "") for i, name in enumerate(header)}
        for col in columns or ():
            rec.setdefault(col, "")
        records.append(rec)
    return records


def encode(records: Iterable[dict], columns: Sequence[str]) -> str:
    """Serialize records to CSV text under a fixed header.

    Fields missing from a record are written empty; keys outside `columns`
    are not written.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(list(columns))
    for r in records:
        writer.writerow([_cell(r.get(col)) for col in columns])
    return buf.getvalue()


def parse_csv_content(text: Optional[str], columns: Sequence[str]) -> CsvParseResult:
    """Header-driven parse that trims values and coerces boolean columns."""
    result = CsvParseResult()
    if text is None or not text.strip():
        return result
    try:
        rows = _read_rows(text)
    except CSVDecodeError as e:
        result.errors.append(str(e))
        return result
    if not rows:
        return result
    header = [h.strip() for h in rows[0]]
    for lineno, row in enumerate(rows[1:], start=2):
        if len(row) != len(header):
            result.errors.append(f"row {lineno}: expected {len(header)} fields, found {len(row)}")
        rec: Dict[str, object] = {}
        for i, name in enumerate(header):
            value = row[i].strip() if i < len(row) else ""
            rec[name] = value.lower() == "true" if name in BOOLEAN_FIELDS else value
        for col in columns:
            rec.setdefault(col, False if col in BOOLEAN_FIELDS else "")
        result.data.append(rec)
    return result
