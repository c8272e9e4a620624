"""
Spreadsheet parsing for guest list import
"""

import csv
import io
import os
import re
from collections import OrderedDict
from typing import Any, Dict, List, Optional

import pandas as pd

from app.services.column_inference import ColumnMapping
from app.services.exceptions import ValidationError

ALLOWED_EXTENSIONS = (".csv", ".xlsx", ".xls")
ALLOWED_CONTENT_TYPES = (
    "text/csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)

PHONE_DISALLOWED = re.compile(r"[^\d+\-().\s]")

MIN_GROUP_SIZE = 2
MIN_SUGGESTED_TABLE_SIZE = 4
MAX_SUGGESTED_TABLE_SIZE = 8


def suggested_table_size(member_count: int) -> int:
    return min(max(member_count, MIN_SUGGESTED_TABLE_SIZE), MAX_SUGGESTED_TABLE_SIZE)


class ExcelService:
    """Service for turning uploaded spreadsheets into guest rows"""

    @staticmethod
    def is_supported_file(filename: Optional[str], content_type: Optional[str] = None) -> bool:
        extension = os.path.splitext(filename or "")[1].lower()
        return extension in ALLOWED_EXTENSIONS or content_type in ALLOWED_CONTENT_TYPES

    @staticmethod
    def csv_width(file_content: bytes) -> int:
        """Cell count of the widest line"""
        text = file_content.decode("utf-8-sig", errors="replace")
        return max((len(row) for row in csv.reader(io.StringIO(text))), default=0)

    @staticmethod
    def read_rows(file_content: bytes, filename: str) -> List[List[str]]:
        """Read the first sheet as a grid of strings, dropping fully blank rows"""
        buffer = io.BytesIO(file_content)
        try:
            if filename.lower().endswith(".csv"):
                width = ExcelService.csv_width(file_content)
                if not width:
                    return []
                # Later lines may be wider than the first one
                df = pd.read_csv(
                    buffer, header=None, names=list(range(width)), dtype=str,
                    keep_default_na=False, skip_blank_lines=True,
                )
            else:
                df = pd.read_excel(buffer, header=None, dtype=str, sheet_name=0)
        except Exception as e:
            raise ValidationError(f"Could not read the uploaded file: {e}") from e

        df = df.fillna("")
        rows = []
        for record in df.values.tolist():
            cells = [str(cell).strip() for cell in record]
            if any(cells):
                rows.append(cells)
        return rows

    @staticmethod
    def _cell(row: List[str], index: Optional[int]) -> str:
        if index is None or index >= len(row):
            return ""
        return (row[index] or "").strip()

    @staticmethod
    def split_name(full_name: str) -> Dict[str, Optional[str]]:
        parts = full_name.split()
        return {
            "firstName": parts[0] if parts else None,
            "lastName": " ".join(parts[1:]) or None,
        }

    @staticmethod
    def clean_phone(value: str) -> Optional[str]:
        cleaned = PHONE_DISALLOWED.sub("", value).strip()
        return cleaned or None

    @staticmethod
    def row_name(row: List[str], mapping: ColumnMapping) -> Dict[str, Optional[str]]:
        """First and last name from their own columns, else split from the full-name column"""
        first = ExcelService._cell(row, mapping.first_name_index)
        last = ExcelService._cell(row, mapping.last_name_index)
        if first or last:
            return {"firstName": first or None, "lastName": last or None}
        return ExcelService.split_name(ExcelService._cell(row, mapping.name_index))

    @staticmethod
    def map_rows(rows: List[List[str]], mapping: ColumnMapping) -> List[Dict[str, Any]]:
        """Apply the detected column mapping; rows without a name are skipped"""
        data_rows = rows[1:] if mapping.has_header else rows
        guests = []
        for row in data_rows:
            names = ExcelService.row_name(row, mapping)
            name = " ".join(part for part in (names["firstName"], names["lastName"]) if part)
            if not name:
                continue

            email = ExcelService._cell(row, mapping.email_index)
            guest = {
                "name": name,
                **names,
                "phoneNumber": ExcelService.clean_phone(ExcelService._cell(row, mapping.phone_index)),
                "email": email if "@" in email else None,
                "groupInfo": ExcelService._cell(row, mapping.group_column_index) or None,
                "selected": True,
            }
            guests.append(guest)
        return guests

    @staticmethod
    def group_entry(
        group_id: str, name: str, group_info: str, members: List[str], table_size: Optional[int] = None
    ) -> Dict[str, Any]:
        return {
            "id": group_id,
            "name": name,
            "groupInfo": group_info,
            "members": members,
            "suggestedTableSize": table_size or suggested_table_size(len(members)),
            "selected": True,
        }

    @staticmethod
    def detect_groups(guests: List[Dict[str, Any]], group_type: Optional[str]) -> List[Dict[str, Any]]:
        """Guests sharing a group value form a group once there are at least two"""
        by_value: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for guest in guests:
            if guest.get("groupInfo"):
                by_value.setdefault(guest["groupInfo"], []).append(guest)

        label = "Table" if group_type == "table_explicit" else "Group"
        return [
            ExcelService.group_entry(f"group_{value}", f"{label} {value}", value, [g["name"] for g in group_guests])
            for value, group_guests in by_value.items()
            if len(group_guests) >= MIN_GROUP_SIZE
        ]
