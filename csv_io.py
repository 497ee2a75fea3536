from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from pathlib import PurePath
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from assignment_models import AssignmentRecord
from date_utils import Clock, normalize_date
from logger import get_logger

log = get_logger("csv_io")

EXPECTED_FIELDS = 4
INPUT_COLUMNS = ["EmpID", "ProjectID", "DateFrom", "DateTo"]

_SAMPLE_ROWS = [
    ("143", "12", "2013-11-01", "2014-01-05"),
    ("218", "10", "2012-05-16", "NULL"),
    ("143", "10", "2009-01-01", "2011-04-27"),
    ("218", "12", "2013-12-01", "2014-03-10"),
    ("301", "10", "2010-06-01", "2013-02-15"),
    ("301", "12", "2013-10-15", "2014-02-01"),
    ("412", "7", "3 Mar 2015", "10 Aug 2016"),
    ("143", "7", "2015-06-01", "2016-01-31"),
]


class RowParseError(ValueError):
    """One input row can't become an AssignmentRecord."""


@dataclass(frozen=True)
class RowIssue:
    line_no: int
    raw: str
    reason: str


@dataclass(frozen=True)
class AssignmentPayload:
    records: List[AssignmentRecord] = field(default_factory=list)
    issues: List[RowIssue] = field(default_factory=list)
    header_skipped: bool = False

    @property
    def dropped(self) -> int:
        return len(self.issues)


def parse_fields(
    fields: Sequence[str],
    *,
    clock: Optional[Clock] = None,
    null_token: str = "null",
    dayfirst: bool = False,
) -> AssignmentRecord:
    """Build one AssignmentRecord from four already-split fields. Raises RowParseError."""
    values = [str(v).strip() for v in fields]
    if len(values) != EXPECTED_FIELDS:
        raise RowParseError(f"expected {EXPECTED_FIELDS} fields, got {len(values)}")

    emp, proj, start_raw, end_raw = values
    try:
        return AssignmentRecord(
            employee_id=emp,
            project_id=proj,
            start_date=normalize_date(start_raw, clock=clock, null_token=null_token, dayfirst=dayfirst),
            end_date=normalize_date(end_raw, clock=clock, null_token=null_token, dayfirst=dayfirst),
        )
    except ValidationError as ve:
        msgs = []
        for err in ve.errors():
            loc = ".".join([str(x) for x in err.get("loc", [])])
            msgs.append(f"{loc}: {err.get('msg', 'Invalid value')}")
        raise RowParseError("; ".join(msgs)) from ve


def is_header(fields: Sequence[str], header_marker: str = "EmpID") -> bool:
    """A first row is a header if its first field contains the marker (case-sensitive)."""
    return bool(fields) and header_marker in str(fields[0])


def _collect(
    rows: Iterable[Tuple[int, str, List[str]]],
    *,
    clock: Optional[Clock],
    header_marker: str,
    null_token: str,
    dayfirst: bool,
) -> AssignmentPayload:
    records: List[AssignmentRecord] = []
    issues: List[RowIssue] = []
    header_skipped = False
    first = True

    for line_no, raw, fields in rows:
        if first:
            first = False
            if is_header(fields, header_marker):
                header_skipped = True
                continue
        try:
            records.append(parse_fields(fields, clock=clock, null_token=null_token, dayfirst=dayfirst))
        except RowParseError as e:
            log.debug("Dropping line %d (%s): %r", line_no, e, raw)
            issues.append(RowIssue(line_no=line_no, raw=raw, reason=str(e)))

    log.info("Read %d assignment(s), dropped %d row(s)", len(records), len(issues))
    return AssignmentPayload(records=records, issues=issues, header_skipped=header_skipped)


def _decode(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValueError(f"Unable to read the file as UTF-8 text. Details: {e}") from e


def read_assignments_csv(
    data: Union[str, bytes],
    *,
    clock: Optional[Clock] = None,
    delimiter: str = ",",
    header_marker: str = "EmpID",
    null_token: str = "null",
    dayfirst: bool = False,
) -> AssignmentPayload:
    """
    Reads delimited text, one assignment per line:

        EmpID, ProjectID, DateFrom, DateTo

    Blank lines are ignored. Rows with the wrong number of fields or a
    non-integer id are dropped and reported in ``issues``.
    """
    text = _decode(data)
    rows = [
        (n, line.rstrip("\r"), line.rstrip("\r").split(delimiter))
        for n, line in enumerate(text.split("\n"), start=1)
        if line.strip()
    ]
    return _collect(rows, clock=clock, header_marker=header_marker, null_token=null_token, dayfirst=dayfirst)


def _cell_to_text(value: Any) -> str:
    """Excel cell -> the text a CSV export of it would contain."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    # pandas sometimes gives Timestamp
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def read_assignments_excel(
    excel_bytes: bytes,
    *,
    clock: Optional[Clock] = None,
    header_marker: str = "EmpID",
    null_token: str = "null",
    dayfirst: bool = False,
) -> AssignmentPayload:
    """
    Reads the first sheet of an .xlsx workbook with the same row rules as the CSV reader.

    Cells pandas would normally read as missing (``NULL``, ``NA`` ...) are
    kept as text, so an open-ended DateTo resolves to now like in the CSV
    reader. Empty cells beyond the fourth column don't count as fields, so a
    four-column table with a blank column E to its right still reads fine.
    """
    try:
        df = pd.read_excel(
            BytesIO(excel_bytes),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            engine="openpyxl",
        )
    except Exception as e:
        raise ValueError(f"Unable to read .xlsx file. Make sure it's an Excel workbook (.xlsx). Details: {e}") from e

    rows = []
    for idx, row in df.iterrows():
        fields = [_cell_to_text(v) for v in row.tolist()]
        if not any(f.strip() for f in fields):
            continue
        while len(fields) > EXPECTED_FIELDS and not fields[-1].strip():
            fields.pop()
        rows.append((int(idx) + 1, ",".join(fields), fields))

    return _collect(rows, clock=clock, header_marker=header_marker, null_token=null_token, dayfirst=dayfirst)


def read_assignments(
    data: Union[str, bytes],
    filename: str = "",
    *,
    clock: Optional[Clock] = None,
    delimiter: str = ",",
    header_marker: str = "EmpID",
    null_token: str = "null",
    dayfirst: bool = False,
) -> AssignmentPayload:
    """Dispatch on the file extension: .xlsx goes to the Excel reader, everything else is text."""
    if PurePath(filename).suffix.lower() == ".xlsx":
        if isinstance(data, str):
            raise ValueError("An .xlsx upload must be read as bytes.")
        return read_assignments_excel(
            data, clock=clock, header_marker=header_marker, null_token=null_token, dayfirst=dayfirst
        )
    return read_assignments_csv(
        data,
        clock=clock,
        delimiter=delimiter,
        header_marker=header_marker,
        null_token=null_token,
        dayfirst=dayfirst,
    )


def sample_csv_text() -> str:
    """A small demo dataset (with a header row) for the 'Try sample' button."""
    lines = [", ".join(INPUT_COLUMNS)]
    lines.extend(", ".join(row) for row in _SAMPLE_ROWS)
    return "\n".join(lines) + "\n"
