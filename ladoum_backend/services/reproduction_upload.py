"""
Heat history file upload service
Parses CSV/XLSX heat records, validates their dates and bulk inserts them as
Heat events for one farm.
"""

import io
import logging
import pandas as pd
from typing import Dict, List, Optional, Tuple
from fastapi import HTTPException, UploadFile
from ..models import HeatIntensity
from ..events.event_types import InvalidDateError, ReproductionEvent, ReproductionEventType, parse_event_date
from .reproduction import _insert_event, _normalize_text

logger = logging.getLogger(__name__)

VALID_INTENSITIES = [i.value for i in HeatIntensity]


def find_column(df: pd.DataFrame, column_keywords: List[str], required: bool = False) -> Optional[str]:
    """
    Find column in dataframe by keywords (case-insensitive, partial match)
    Returns column name or None if not found
    """
    column_keywords = [kw.strip().upper() for kw in column_keywords]

    for col in df.columns:
        col_upper = str(col).strip().upper()
        for keyword in column_keywords:
            if keyword in col_upper or col_upper in keyword:
                return str(col)

    if required:
        raise HTTPException(
            status_code=400,
            detail=f"Required column not found. Looking for: {', '.join(column_keywords)}. Available columns: {', '.join(map(str, df.columns))}"
        )
    return None


def parse_heat_file(content: bytes, filename: str) -> Tuple[pd.DataFrame, Dict[str, Optional[str]]]:
    """
    Parse CSV or XLSX content into a normalized dataframe with columns
    animal, date and optionally intensity and notes.
    Returns: (dataframe, column_mapping)
    """
    filename = (filename or "").lower()
    if filename.endswith('.csv'):
        # Dates stay text so dd/mm/yyyy is never read as mm/dd/yyyy
        df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
    elif filename.endswith(('.xlsx', '.xls')):
        df = pd.read_excel(io.BytesIO(content), keep_default_na=False)
    else:
        raise HTTPException(status_code=400, detail="File must be CSV or XLSX format")

    if df.empty:
        raise HTTPException(status_code=400, detail="File is empty")

    animal_col = find_column(df, ["animal_id", "animal id", "animal", "female", "ewe", "brebis"], required=True)
    date_col = find_column(df, ["heat_date", "heat date", "date", "chaleur"], required=True)
    intensity_col = find_column(df, ["intensity", "intensite"])
    notes_col = find_column(df, ["notes", "note", "comment"])

    column_mapping = {
        "animal": animal_col,
        "date": date_col,
        "intensity": intensity_col,
        "notes": notes_col,
    }

    selected_cols = [animal_col, date_col]
    new_names = ["animal", "date"]
    if intensity_col:
        selected_cols.append(intensity_col)
        new_names.append("intensity")
    if notes_col:
        selected_cols.append(notes_col)
        new_names.append("notes")

    df_selected = df[selected_cols].copy()
    df_selected.columns = new_names
    df_selected["animal"] = df_selected["animal"].astype(str).str.strip()
    df_selected = df_selected[df_selected["animal"] != ""].copy()

    if df_selected.empty:
        raise HTTPException(status_code=400, detail="No valid rows found after filtering missing data")

    return df_selected, column_mapping


def _normalize_intensity(value) -> Optional[str]:
    text = _normalize_text(str(value)) if value is not None else None
    if not text:
        return None
    text = text.capitalize()
    return text if text in VALID_INTENSITIES else None


def import_heat_rows(df: pd.DataFrame, farm_id: str, created_by: str) -> Dict:
    """Insert one Heat event per row; bad dates are reported, duplicates skipped"""
    inserted = 0
    skipped_duplicates = 0
    errors = []
    seen = set()

    # Spreadsheet row numbers: header is row 1
    for index, row in df.iterrows():
        row_number = int(index) + 2
        try:
            heat_date = parse_event_date(row["date"])
        except InvalidDateError as e:
            errors.append({"row": row_number, "animalId": row["animal"], "error": str(e)})
            continue

        key = (row["animal"], heat_date)
        if key in seen:
            skipped_duplicates += 1
            continue
        seen.add(key)

        event = ReproductionEvent(
            farm_id=farm_id,
            animal_id=row["animal"],
            type=ReproductionEventType.HEAT,
            date=heat_date,
            intensity=_normalize_intensity(row.get("intensity")),
            notes=_normalize_text(str(row["notes"])) if "notes" in row else None,
            created_by=created_by,
        )
        try:
            _insert_event(event)
            inserted += 1
        except HTTPException as e:
            if e.status_code == 409:
                skipped_duplicates += 1
            else:
                raise

    logger.info(
        f"Heat upload for farm {farm_id}: {inserted} inserted, "
        f"{skipped_duplicates} duplicates skipped, {len(errors)} errors"
    )
    return {
        "total_rows": len(df),
        "inserted": inserted,
        "skipped_duplicates": skipped_duplicates,
        "errors": errors,
    }


async def upload_heats_from_file(file: UploadFile, farm_id: str, created_by: str) -> Dict:
    """Read an uploaded heat history file and import it for a farm"""
    content = await file.read()
    df, column_mapping = parse_heat_file(content, file.filename)
    result = import_heat_rows(df, farm_id, created_by)
    result["column_mapping"] = column_mapping
    return result
