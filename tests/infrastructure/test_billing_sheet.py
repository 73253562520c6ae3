from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from tuition_checker.domain.models import MISSING
from tuition_checker.domain.rules import has_due_date_error
from tuition_checker.errors import SpreadsheetError
from tuition_checker.infrastructure.parsing.billing_sheet import read_billing_rows, rows_to_records
from tuition_checker.infrastructure.repositories.spreadsheet_repository import SpreadsheetBillingRepository

HEADER = [f"Col {letter}" for letter in "ABCDEFGHIJKLMNOPQ"]


def make_row(student, guardian="Maria Silva", grade="5º ano", due="05/03/2024", billed=2000, minimum=1500):
    row = [None] * 17
    row[2] = student
    row[3] = guardian
    row[9] = grade
    row[11] = due
    row[14] = billed
    row[16] = minimum
    return row


def test_rows_are_mapped_by_column_position():
    records = rows_to_records([HEADER, make_row("Ana Silva", billed="R$ 2.000,00", minimum="R$ 1.500,00")])

    assert len(records) == 1
    record = records[0]
    assert record.student_name == "Ana Silva"
    assert record.guardian_name == "Maria Silva"
    assert record.grade == "5º ano"
    assert record.due_date == "05/03/2024"
    assert record.billed == 2000.0
    assert record.minimum == 1500.0
    assert record.diff_abs == 500.0
    assert record.diff_percent == 25.0


def test_header_row_is_discarded():
    assert rows_to_records([make_row("Header Looking Row")]) == []
    assert rows_to_records([]) == []


def test_missing_cells_get_defaults():
    short_row = [None, None, "Bruno Lima"]
    records = rows_to_records([HEADER, short_row])

    assert len(records) == 1
    record = records[0]
    assert record.guardian_name == MISSING
    assert record.grade == MISSING
    assert record.due_date == MISSING
    assert record.billed == 0
    assert record.minimum == 0
    assert record.diff_percent == 0


def test_rows_without_student_or_billed_amount_are_dropped():
    rows = [
        HEADER,
        make_row(None),
        make_row(""),
        make_row("Carla Dias", billed=float("nan")),
        make_row("Ana Silva"),
    ]

    records = rows_to_records(rows)

    assert [r.student_name for r in records] == ["Ana Silva"]


def test_order_is_preserved():
    rows = [HEADER, make_row("Zeca"), make_row("Ana"), make_row("Marcos")]
    assert [r.student_name for r in rows_to_records(rows)] == ["Zeca", "Ana", "Marcos"]


def write_workbook(path: Path, rows) -> Path:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


def test_reads_first_sheet_of_workbook(tmp_path: Path):
    path = write_workbook(
        tmp_path / "centro.xlsx",
        [
            HEADER,
            make_row("Ana Silva", due=datetime(2024, 3, 5)),
            make_row("Bruno Lima", due="07/03/2024", billed="R$ 900,00"),
        ],
    )

    records = SpreadsheetBillingRepository(path).list_billing_records()

    assert [r.student_name for r in records] == ["Ana Silva", "Bruno Lima"]
    assert records[0].due_date == 45356.0
    assert records[1].billed == 900.0


def test_reads_csv_uploads(tmp_path: Path):
    lines = [",".join(HEADER)]
    row = ["" if cell is None else str(cell) for cell in make_row("Ana Silva")]
    lines.append(",".join(row))
    raw = ("\n".join(lines) + "\n").encode("utf-8")

    records = SpreadsheetBillingRepository(raw, filename="centro.csv").list_billing_records()

    assert len(records) == 1
    assert records[0].billed == 2000.0
    assert records[0].due_date == "05/03/2024"


def test_unreadable_file_raises_spreadsheet_error():
    with pytest.raises(SpreadsheetError):
        read_billing_rows(b"definitely not a workbook", filename="centro.xlsx")


def csv_bytes(rows, sep=",") -> bytes:
    lines = [sep.join("" if cell is None else str(cell) for cell in row) for row in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")


def test_csv_numbers_keep_their_decimal_point():
    raw = csv_bytes([HEADER, make_row("Ana Silva", due="45356", billed="2000.50", minimum="1500.25")])

    (record,) = SpreadsheetBillingRepository(raw, filename="centro.csv").list_billing_records()

    assert record.billed == 2000.5
    assert record.minimum == 1500.25
    assert record.due_date == 45356
    assert record.diff_abs == 500.25
    assert not has_due_date_error(record)


def test_semicolon_csv_with_brazilian_amounts():
    raw = csv_bytes([HEADER, make_row("Ana Silva", billed="R$ 2.000,50", minimum="1.500,25")], sep=";")

    (record,) = SpreadsheetBillingRepository(raw, filename="centro.csv").list_billing_records()

    assert record.student_name == "Ana Silva"
    assert record.billed == 2000.5
    assert record.minimum == 1500.25
    assert record.due_date == "05/03/2024"
