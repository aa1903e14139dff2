from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

LOGGER = logging.getLogger(__name__)

BOM = "\ufeff"
QUOTE = '"'
DELIMITER = ","


def _finish_field(chars: list[str], quoted_span: tuple[int, int] | None) -> str:
    # Whitespace is trimmed only outside the quoted region of a field.
    if quoted_span is None:
        return "".join(chars).strip()
    first, last = quoted_span
    head = "".join(chars[:first]).lstrip()
    body = "".join(chars[first:last])
    tail = "".join(chars[last:]).rstrip()
    return head + body + tail


def _emit_row(rows: list[list[str]], row: list[str]) -> None:
    if any(field for field in row):
        rows.append(row)


def split_rows(text: str) -> list[list[str]]:
    """Split delimited text into rows of trimmed fields.

    Commas separate fields outside quotes; a doubled quote inside a quoted
    region is a literal quote; LF, CRLF and lone CR end a record. Rows whose
    fields are all empty are skipped. When the input ends inside an open quote
    the unterminated trailing record is dropped and the complete rows before
    it are returned.
    """
    if text.startswith(BOM):
        text = text[1:]

    rows: list[list[str]] = []
    row: list[str] = []
    chars: list[str] = []
    quoted_span: tuple[int, int] | None = None
    quote_start = 0
    in_quotes = False
    index = 0
    length = len(text)

    while index < length:
        char = text[index]
        if in_quotes:
            if char == QUOTE:
                if index + 1 < length and text[index + 1] == QUOTE:
                    chars.append(QUOTE)
                    index += 2
                    continue
                in_quotes = False
                start = quote_start if quoted_span is None else quoted_span[0]
                quoted_span = (start, len(chars))
            else:
                chars.append(char)
        elif char == QUOTE:
            in_quotes = True
            quote_start = len(chars)
        elif char == DELIMITER:
            row.append(_finish_field(chars, quoted_span))
            chars = []
            quoted_span = None
        elif char in "\r\n":
            row.append(_finish_field(chars, quoted_span))
            chars = []
            quoted_span = None
            _emit_row(rows, row)
            row = []
            if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                index += 1
        else:
            chars.append(char)
        index += 1

    if in_quotes:
        LOGGER.warning(
            "Unterminated quoted field; dropped trailing record after %d complete rows",
            len(rows),
        )
        return rows

    if row or chars or quoted_span is not None:
        row.append(_finish_field(chars, quoted_span))
        _emit_row(rows, row)
    return rows


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse delimited text into header-keyed records."""
    rows = split_rows(text)
    if not rows:
        return []
    header = rows[0]
    records: list[dict[str, str]] = []
    for line in rows[1:]:
        records.append(
            {
                name: (line[position] if position < len(line) else "")
                for position, name in enumerate(header)
            }
        )
    return records


def serialize_csv(header: list[str], rows: Iterable[Iterable[str]]) -> str:
    """Write rows back out, quoting fields that need it."""

    def _quote(value: str) -> str:
        needs_quotes = any(token in value for token in (DELIMITER, QUOTE, "\r", "\n"))
        if needs_quotes or value != value.strip():
            return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
        return value

    lines = [DELIMITER.join(_quote(name) for name in header)]
    lines.extend(DELIMITER.join(_quote(str(value)) for value in row) for row in rows)
    return "\n".join(lines) + "\n"


def unique_values(records: Iterable[Mapping[str, str]], field: str) -> list[str]:
    values = {str(record.get(field, "") or "").strip() for record in records}
    return sorted(value for value in values if value)
