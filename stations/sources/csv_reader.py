"""Streaming CSV source reader."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator

from stations.common.errors import SourceParseError

RawRow = dict[str, str]


def read_rows(path: Path, has_header: bool = True) -> Iterator[RawRow]:
    """Yield one mapping per data line of ``path``.

    The first line names the columns when ``has_header`` is set; otherwise
    columns are keyed by position. A line whose column count differs from
    the header raises ``SourceParseError`` when it is reached.
    """
    try:
        handle = path.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise SourceParseError(f"Cannot open source file {path}: {exc}") from exc

    with handle:
        reader = csv.reader(handle)
        header: list[str] | None = None
        try:
            for row in reader:
                if not row or all(not cell.strip() for cell in row):
                    continue
                if header is None:
                    if has_header:
                        header = [name.strip() for name in row]
                        continue
                    header = [str(idx) for idx in range(len(row))]
                if len(row) != len(header):
                    raise SourceParseError(
                        f"{path}:{reader.line_num}: expected {len(header)} columns, found {len(row)}"
                    )
                yield dict(zip(header, row))
        except (csv.Error, UnicodeDecodeError) as exc:
            raise SourceParseError(f"{path}:{reader.line_num}: {exc}") from exc

        if header is None and has_header:
            raise SourceParseError(f"Source file {path} has no header row")
