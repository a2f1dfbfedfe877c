from io import BytesIO

import pandas as pd
import pytest

from config import ImportFailed
from importer import extract_names, import_client_names


def xlsx_bytes(rows, sheets=None):
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Clients", header=False, index=False)
        for name, extra in (sheets or {}).items():
            pd.DataFrame(extra).to_excel(writer, sheet_name=name, header=False, index=False)
    return buffer.getvalue()


def test_excel_first_column_only():
    data = xlsx_bytes([["Wiz", "ignored"], ["  Melio  ", "x"], ["Bringg", None]])
    assert import_client_names(data, "clients.xlsx") == ["Wiz", "Melio", "Bringg"]


def test_excel_reads_first_sheet_only():
    data = xlsx_bytes([["Wiz"]], sheets={"Other": [["Gong.io"]]})
    assert import_client_names(data, "clients.xlsx") == ["Wiz"]


def test_header_tokens_dropped_in_both_languages():
    data = xlsx_bytes([["Name"], ["Wiz"], ["  CLIENT "], ["שם החברה"], ["לקוח"], ["Company"], ["רפאל מערכות"]])
    assert import_client_names(data, "clients.xlsx") == ["Wiz", "רפאל מערכות"]


def test_non_string_and_blank_cells_skipped():
    data = xlsx_bytes([[42], ["   "], [None], ["Papaya Global"], [3.5]])
    assert import_client_names(data, "clients.xlsx") == ["Papaya Global"]


def test_csv_import():
    data = "Company,Sector\nWiz,Security\nmonday.com,Work OS\n,\nGong.io,Sales\n".encode("utf-8")
    assert import_client_names(data, "CLIENTS.CSV") == ["Wiz", "monday.com", "Gong.io"]


def test_csv_hebrew_utf8():
    data = "שם לקוח\nבנק הפועלים\n".encode("utf-8")
    assert import_client_names(data, "clients.csv") == ["בנק הפועלים"]


def test_csv_latin1_fallback():
    data = "Société Générale\nWiz\n".encode("latin1")
    assert import_client_names(data, "clients.csv") == ["Société Générale", "Wiz"]


def test_empty_csv_yields_nothing():
    assert import_client_names(b"", "clients.csv") == []


def test_corrupt_file_raises():
    with pytest.raises(ImportFailed):
        import_client_names(b"definitely not a workbook", "clients.xlsx")


def test_extract_names_empty_frame():
    assert extract_names(pd.DataFrame()) == []


def test_csv_rows_with_extra_fields():
    data = "Wiz\nMelio,Fintech\nGong.io,Sales,Tel Aviv\n".encode("utf-8")
    assert import_client_names(data, "clients.csv") == ["Wiz", "Melio", "Gong.io"]
