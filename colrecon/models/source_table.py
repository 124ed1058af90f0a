from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

"""SourceTable model: the boundary object handed over by file decoding.

The decoding collaborator produces the ordered header list plus a bounded
preview (a few rows per header). Column positions are fixed once parsing
completes; the viewport navigator depends on them.
"""

__all__ = [
    "SourceColumn",
    "SourceTable",
]


@dataclass(frozen=True)
class SourceColumn:
    header: str  # 元ファイルのヘッダ文字列 (ファイル内で一意)
    index: int  # ファイル内の列位置 (不変)


@dataclass(frozen=True, init=False)
class SourceTable:
    """Parsed upload: file name, ordered headers and per-header preview rows.

    Headers are assumed unique; the reader enforces that before a
    SourceTable is built. Headers absent from ``preview_rows`` simply have
    an empty preview.
    """
    file_name: str
    source_columns: tuple[str, ...]
    preview_rows: Mapping[str, tuple[str, ...]]

    def __init__(
        self,
        file_name: str,
        source_columns: Sequence[str],
        preview_rows: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        object.__setattr__(self, "file_name", file_name)
        object.__setattr__(self, "source_columns", tuple(source_columns))
        rows = preview_rows or {}
        object.__setattr__(
            self,
            "preview_rows",
            {h: tuple(rows.get(h, ())) for h in self.source_columns},
        )

    def __len__(self) -> int:
        return len(self.source_columns)

    def __contains__(self, header: object) -> bool:
        return header in self.preview_rows

    @property
    def columns(self) -> list[SourceColumn]:
        return [SourceColumn(header=h, index=i) for i, h in enumerate(self.source_columns)]

    def index_of(self, header: str) -> int:
        return self.source_columns.index(header)

    def preview(self, header: str) -> tuple[str, ...]:
        return self.preview_rows.get(header, ())
