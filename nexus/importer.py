"""Read spreadsheet exports (local files or http(s) URLs) into raw rows and Tasks.

A source either yields every row or raises BatchReadError; there is no
partial result, so a failed import never reaches the store.
"""

import io
import logging
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlparse

import httpx
import pandas as pd

from nexus.errors import BatchReadError
from nexus.models import Task, TaskType
from nexus.normalizer import normalize

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def _is_url(source: str | Path) -> bool:
    return isinstance(source, str) and urlparse(source).scheme in ("http", "https")


def _fetch(url: str, timeout: float) -> bytes:
    response = httpx.get(url, timeout=timeout, follow_redirects=True)
    if response.status_code in (401, 403):
        raise BatchReadError(f"{url} returned {response.status_code}. Check the export link permissions.")
    response.raise_for_status()
    return response.content


def _csv_separator(data: bytes) -> str:
    # Locale-dependent exports use ";" where "," is the decimal mark.
    header = data.split(b"\n", 1)[0]
    return ";" if header.count(b";") > header.count(b",") else ","


def _frame(data: bytes, suffix: str) -> pd.DataFrame:
    # dtype=str keeps ticket numbers and priorities exactly as displayed in the sheet
    if suffix in CSV_SUFFIXES:
        return pd.read_csv(
            io.BytesIO(data),
            sep=_csv_separator(data),
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
        )
    return pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=str, keep_default_na=False)


def read_rows(source: str | Path, timeout: float = 30.0) -> list[dict[str, object]]:
    """Return every row of the first sheet of source as a column→value mapping."""
    label = str(source)
    try:
        if _is_url(source):
            suffix = Path(urlparse(str(source)).path).suffix.lower()
            data = _fetch(str(source), timeout)
        else:
            path = Path(source)
            suffix = path.suffix.lower()
            data = path.read_bytes()
        if suffix not in CSV_SUFFIXES | EXCEL_SUFFIXES:
            raise BatchReadError(f"Unsupported file type '{suffix or '(none)'}' for {label}")
        frame = _frame(data, suffix)
    except BatchReadError:
        raise
    except Exception as exc:
        raise BatchReadError(f"Could not read {label}: {exc}") from exc

    rows = [{str(k): v for k, v in record.items()} for record in frame.to_dict(orient="records")]
    logger.info("Read %d row(s) from %s", len(rows), label)
    return rows


def parse_source(source: str | Path, type_hint: TaskType | None = None, timeout: float = 30.0) -> list[Task]:
    return [normalize(row, type_hint) for row in read_rows(source, timeout)]


def parse_sources(
    sources: Iterable[str | Path],
    type_hint: TaskType | None = None,
    timeout: float = 30.0,
) -> list[Task]:
    """Parse every source before returning anything; one bad file fails the whole batch."""
    batch: list[Task] = []
    for source in sources:
        batch.extend(parse_source(source, type_hint, timeout))
    return batch
