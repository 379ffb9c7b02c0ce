import csv
import io
import json
from datetime import datetime
from typing import List, NamedTuple, Optional
from daybook.models.entry import Entry
from daybook.utils.timezone import format_date, format_datetime, utc_now

CSV_HEADER = ["Date", "Text", "Rating", "Created"]
SUPPORTED_FORMATS = ("csv", "json")
MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}

class ExportFile(NamedTuple):
    content: str
    filename: str
    media_type: str

def parse_export_format(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    fmt = value.strip().lower()
    return fmt if fmt in SUPPORTED_FORMATS else None

def generate_csv(entries: List[Entry], tz_name: str) -> str:
    """One row per entry in the order given; quotes in text are doubled by the csv writer."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow([
            format_date(entry.entry_date),
            entry.text,
            "" if entry.rating is None else str(entry.rating),
            format_datetime(entry.created_at, tz_name),
        ])
    return buffer.getvalue()

def generate_json(entries: List[Entry], tz_name: str) -> str:
    records = [
        {
            "date": format_date(entry.entry_date),
            "text": entry.text,
            "rating": entry.rating,
            "created_at": format_datetime(entry.created_at, tz_name),
            "updated_at": format_datetime(entry.updated_at, tz_name),
        }
        for entry in entries
    ]
    return json.dumps(records, ensure_ascii=False, indent=2)

def generate_file_name(fmt: str, year: Optional[int] = None, now: Optional[datetime] = None) -> str:
    """diary_export[_<year>]_<YYYY-MM-DD>.<ext>, stamped with the UTC date of the export run."""
    stamp = (now or utc_now()).strftime("%Y-%m-%d")
    year_suffix = f"_{year}" if year else ""
    return f"diary_export{year_suffix}_{stamp}.{fmt}"

def render_export(entries: List[Entry], fmt: str, tz_name: str, year: Optional[int] = None, now: Optional[datetime] = None) -> ExportFile:
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    content = generate_csv(entries, tz_name) if fmt == "csv" else generate_json(entries, tz_name)
    return ExportFile(content=content, filename=generate_file_name(fmt, year, now), media_type=MEDIA_TYPES[fmt])
