"""
Exports of extracted records: CSV summaries, rename scripts, grouped tag views
and JSON-ready dictionaries.
"""

import csv
import io
import shlex
from collections.abc import Iterable
from pathlib import PurePath
from typing import Any, Dict, List, Tuple

from pathvalidate import sanitize_filename

from pixel_exif.core.normalizer import TAG_KEY_SEPARATOR
from pixel_exif.models.record import MetadataRecord
from pixel_exif.utils.formatting import format_coordinates

CSV_HEADERS = ["Filename", "Date", "Camera", "Lens", "ISO", "Aperture", "Shutter", "GPS"]
OTHER_GROUP = "Other"
RENAME_SCRIPT_HEADER = "#!/bin/bash\n# Rename script generated by pixel-exif\n\n"


def records_to_csv(records: Iterable[MetadataRecord]) -> str:
    """Builds a CSV summary with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for r in records:
        writer.writerow(
            [
                r.filename,
                r.date_time_original or "N/A",
                f"{r.make or ''} {r.model or ''}",
                r.lens or "",
                r.iso or "",
                r.f_number or "",
                r.exposure_time or "",
                format_coordinates(r.gps.latitude, r.gps.longitude) if r.gps else "",
            ]
        )
    return buffer.getvalue().rstrip("\n")


def rename_target(record: MetadataRecord) -> str | None:
    """
    Proposes a date-based filename, e.g. '2024:05:01 10:11:12' -> '2024-05-01_10-11-12_EOSR.jpg'.
    Returns None for records without a capture date.
    """
    if not record.date_time_original:
        return None
    date_str = record.date_time_original.replace(":", "-").replace(" ", "_", 1)
    model = record.model.replace(" ", "") if record.model else ""
    suffix = PurePath(record.filename).suffix.lstrip(".")
    new_name = f"{date_str}_{model or 'IMG'}"
    if suffix:
        new_name = f"{new_name}.{suffix}"
    return sanitize_filename(new_name, platform="auto")


def build_rename_script(records: Iterable[MetadataRecord]) -> str:
    """Builds a bash script that renames files after their capture date."""
    lines = []
    for r in records:
        if target := rename_target(r):
            lines.append(f"mv {shlex.quote(r.filename)} {shlex.quote(target)}\n")
    return RENAME_SCRIPT_HEADER + "".join(lines)


def group_tags(all_tags: Dict[str, str]) -> Dict[str, List[Tuple[str, str]]]:
    """Groups flattened tags by their group prefix, preserving order."""
    groups: Dict[str, List[Tuple[str, str]]] = {}
    for full_key, value in all_tags.items():
        group, sep, tag = full_key.partition(TAG_KEY_SEPARATOR)
        if not sep:
            group, tag = OTHER_GROUP, full_key
        groups.setdefault(group, []).append((tag, value))
    return groups


def record_to_dict(record: MetadataRecord) -> Dict[str, Any]:
    """Serializable view of a record; the raw buffer is never included."""
    data: Dict[str, Any] = {
        "id": record.id,
        "filename": record.filename,
        "file_size": record.file_size,
        "mime_type": record.mime_type,
        "dimensions": record.dimensions,
        "make": record.make,
        "model": record.model,
        "lens": record.lens,
        "f_number": record.f_number,
        "exposure_time": record.exposure_time,
        "iso": record.iso,
        "focal_length": record.focal_length,
        "date_time_original": record.date_time_original,
        "software": record.software,
        "color_space": record.color_space,
        "flash": record.flash,
        "white_balance": record.white_balance,
        "orientation": record.orientation,
        "gps": None,
        "thumbnail": record.thumbnail.source.value if record.thumbnail else None,
        "checksum": record.checksum,
        "digests": record.digests.as_dict(),
        "all_tags": dict(record.all_tags),
    }
    if record.gps:
        data["gps"] = {
            "latitude": record.gps.latitude,
            "longitude": record.gps.longitude,
            "altitude": record.gps.altitude,
        }
    return data
