"""
Part Catalog - reference data the OCR items are matched against

Loads the multi-sheet parts workbook (or a CSV export of one sheet)
into ordered sheets of row dicts keyed by column header. The catalog
is read-only once loaded and is passed explicitly to the matcher.
"""

import csv
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from openpyxl import load_workbook

logger = logging.getLogger(__name__)


# Catalog column headers used for matching
FIELD_MATERIAL_NAME = "자재명"
FIELD_MATERIAL_TYPE = "재질"
FIELD_SPEC_TYPE = "사양/타입"
FIELD_CAPACITY_SIZE = "용량/사이즈"
FIELD_DETAILED_SPEC = "상세규격"
FIELD_PART_NUMBER = "품번"

# Order matters: this is the order the fields are joined for scoring
SCORED_FIELDS: Tuple[str, ...] = (
    FIELD_MATERIAL_NAME,
    FIELD_MATERIAL_TYPE,
    FIELD_SPEC_TYPE,
    FIELD_CAPACITY_SIZE,
    FIELD_DETAILED_SPEC,
    FIELD_PART_NUMBER,
)

SUPPORTED_SUFFIXES = ('.xlsx', '.xlsm', '.csv')

ReferenceRow = Dict[str, str]


class CatalogLoadError(Exception):
    """Raised when a catalog file is missing or cannot be read."""


@dataclass
class ReferenceSheet:
    """One worksheet of the catalog."""
    sheet_name: str
    rows: List[ReferenceRow] = field(default_factory=list)

    def __len__(self):
        return len(self.rows)


class PartCatalog:
    """
    Ordered collection of reference sheets.

    Iterating yields sheets in workbook order; the matcher scans rows
    sheet by sheet in that order, so earlier sheets win score ties.
    """

    def __init__(self, sheets: Optional[Iterable[ReferenceSheet]] = None, source: str = ""):
        self.sheets: List[ReferenceSheet] = list(sheets or [])
        self.source = source

    @classmethod
    def from_sheets(cls, sheets: Dict[str, Sequence[ReferenceRow]], source: str = "") -> 'PartCatalog':
        """Build a catalog from {sheet_name: rows} (insertion order kept)."""
        return cls(
            [ReferenceSheet(sheet_name=name, rows=[dict(r) for r in rows]) for name, rows in sheets.items()],
            source=source,
        )

    @classmethod
    def from_xlsx(cls, xlsx_path: Path) -> 'PartCatalog':
        """
        Load every worksheet of a workbook.

        The first row of each sheet holds the column headers; every later
        row with at least one value becomes a row dict. Empty cells are
        left out of the dict.
        """
        try:
            workbook = load_workbook(str(xlsx_path), read_only=True, data_only=True)
        except Exception as e:
            raise CatalogLoadError(f"Failed to open workbook {xlsx_path}: {e}") from e

        sheets = []
        try:
            for worksheet in workbook.worksheets:
                rows_iter = worksheet.iter_rows(values_only=True)
                header_row = next(rows_iter, None)
                if not header_row:
                    sheets.append(ReferenceSheet(sheet_name=worksheet.title))
                    continue

                headers = [_cell_to_str(h).strip() for h in header_row]
                rows = []
                for values in rows_iter:
                    row = _build_row(headers, values)
                    if row:
                        rows.append(row)

                sheets.append(ReferenceSheet(sheet_name=worksheet.title, rows=rows))
        finally:
            workbook.close()

        return cls(sheets, source=str(xlsx_path))

    @classmethod
    def from_csv(cls, csv_path: Path, sheet_name: Optional[str] = None) -> 'PartCatalog':
        """Load a single-sheet catalog from a CSV export (sheet named after the file)."""
        csv_path = Path(csv_path)
        rows = []

        try:
            with open(csv_path, 'r', encoding='utf-8-sig', newline='') as f:
                reader = csv.DictReader(f)
                for record in reader:
                    row = {k.strip(): v for k, v in record.items() if k and v}
                    if row:
                        rows.append(row)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise CatalogLoadError(f"Failed to read CSV {csv_path}: {e}") from e

        return cls([ReferenceSheet(sheet_name=sheet_name or csv_path.stem, rows=rows)], source=str(csv_path))

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.sheet_name for sheet in self.sheets]

    def iter_rows(self) -> Iterator[Tuple[str, ReferenceRow]]:
        """Yield (sheet_name, row) over the whole catalog in scan order."""
        for sheet in self.sheets:
            for row in sheet.rows:
                yield sheet.sheet_name, row

    def __len__(self):
        return sum(len(sheet.rows) for sheet in self.sheets)

    def __iter__(self):
        return iter(self.sheets)

    def __repr__(self):
        return f"PartCatalog(sheets={len(self.sheets)}, rows={len(self)}, source={self.source!r})"


def _cell_to_str(value: Any) -> str:
    """Render a cell value the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _build_row(headers: List[str], values: Sequence[Any]) -> ReferenceRow:
    row: ReferenceRow = {}
    for header, value in zip(headers, values):
        if not header or value is None:
            continue
        text = _cell_to_str(value)
        if text == "":
            continue
        # First column wins when a header repeats
        row.setdefault(header, text)
    return row


def load_catalog(path: Path) -> PartCatalog:
    """
    Load a catalog file, choosing the reader by extension.

    Raises:
        CatalogLoadError: file missing, unsupported or unreadable
    """
    path = Path(path)
    if not path.exists():
        raise CatalogLoadError(f"Catalog file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in ('.xlsx', '.xlsm'):
        catalog = PartCatalog.from_xlsx(path)
    elif suffix == '.csv':
        catalog = PartCatalog.from_csv(path)
    else:
        raise CatalogLoadError(
            f"Unsupported catalog format '{suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )

    logger.info(f"Loaded catalog: {len(catalog.sheets)} sheets, {len(catalog)} rows from {path.name}")
    return catalog
