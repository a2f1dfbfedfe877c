# importer.py
import logging
from io import BytesIO
from typing import List

import pandas as pd

from config import ImportFailed

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ["xlsx", "xls", "csv"]

# Header cells that are never client names (English + Hebrew)
HEADER_TOKENS = {"name", "client", "company", "שם לקוח", "לקוח", "שם החברה"}


def read_uploaded(uploaded_bytes: bytes, filename: str) -> pd.DataFrame:
    """Read the first sheet of an uploaded file (CSV or Excel) without a header row.

    Only the first CSV column is parsed, so rows with extra fields still load.
    CSV cells are read as text. Excel cells keep their native type so numbers
    and dates never pass for names.
    """
    buffer = BytesIO(uploaded_bytes)
    if filename.lower().endswith(".csv"):
        try:
            return pd.read_csv(buffer, header=None, usecols=[0], dtype=str, keep_default_na=False, encoding="utf-8")
        except UnicodeDecodeError:
            buffer.seek(0)  # reset pointer
            return pd.read_csv(buffer, header=None, usecols=[0], dtype=str, keep_default_na=False, encoding="latin1")
    else:
        return pd.read_excel(buffer, sheet_name=0, header=None)


def extract_names(frame: pd.DataFrame) -> List[str]:
    if frame.empty or len(frame.columns) == 0:
        return []

    names = []
    for val in frame.iloc[:, 0].tolist():
        if not isinstance(val, str):
            continue
        name = val.strip()
        if not name or name.lower() in HEADER_TOKENS:
            continue
        names.append(name)
    return names


def import_client_names(uploaded_bytes: bytes, filename: str) -> List[str]:
    """Parse an uploaded file into client names; all or nothing at file level."""
    try:
        frame = read_uploaded(uploaded_bytes, filename)
    except pd.errors.EmptyDataError:
        logger.info("Uploaded file %s is empty", filename)
        return []
    except Exception as e:
        logger.exception("Error parsing uploaded file %s", filename)
        raise ImportFailed(
            "Failed to parse the file. Please ensure it has a simple structure "
            "with client names in the first column."
        ) from e

    names = extract_names(frame)
    logger.info("Read %d client names from %s (%d rows)", len(names), filename, len(frame))
    return names
