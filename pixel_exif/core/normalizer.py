"""
Flattens a decoded tag tree and fills the fixed metadata schema.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from pixel_exif.models.record import GpsCoordinates
from pixel_exif.models.tag_tree import TagTree

log = logging.getLogger(__name__)

# Candidate group for tags stored directly at the top level of the tree
ROOT = None

TAG_KEY_SEPARATOR = " - "

# Field -> (group, tag) candidates, tried in order; the first non-empty hit wins.
FIELD_PRIORITIES: Dict[str, Tuple[Tuple[Optional[str], str], ...]] = {
    "make": (("exif", "Make"), (ROOT, "Make"), ("tiff", "Make")),
    "model": (("exif", "Model"), (ROOT, "Model"), ("tiff", "Model")),
    "lens": (
        ("exif", "LensModel"),
        (ROOT, "LensModel"),
        ("composite", "LensID"),
        (ROOT, "LensID"),
    ),
    "f_number": (("exif", "FNumber"), (ROOT, "FNumber")),
    "exposure_time": (("exif", "ExposureTime"), (ROOT, "ExposureTime")),
    "iso": (("exif", "ISOSpeedRatings"), (ROOT, "ISOSpeedRatings")),
    "focal_length": (("exif", "FocalLength"), (ROOT, "FocalLength")),
    "date_time_original": (
        ("exif", "DateTimeOriginal"),
        (ROOT, "DateTimeOriginal"),
        ("exif", "CreateDate"),
        (ROOT, "CreateDate"),
        ("tiff", "DateTime"),
        (ROOT, "DateTime"),
    ),
    "software": (("exif", "Software"), (ROOT, "Software"), ("tiff", "Software")),
    "color_space": (("exif", "ColorSpace"), (ROOT, "ColorSpace")),
    "flash": (("exif", "Flash"), (ROOT, "Flash")),
    "white_balance": (("exif", "WhiteBalance"), (ROOT, "WhiteBalance")),
    "orientation": (("exif", "Orientation"), (ROOT, "Orientation")),
}

WIDTH_TAG = "Image Width"
HEIGHT_TAG = "Image Height"


def display_value(entry: Any) -> str:
    """
    Extracts the string shown for a tag entry.

    Precedence: `description`, then `value`, then the entry itself when it is a
    plain string or number. Anything else yields an empty string.
    """
    if isinstance(entry, Mapping):
        if entry.get("description") is not None:
            return str(entry["description"])
        if entry.get("value") is not None:
            return str(entry["value"])
        return ""
    if isinstance(entry, (str, int, float)) and not isinstance(entry, bool):
        return str(entry)
    return ""


@dataclass(frozen=True)
class NormalizedFields:
    """Schema fields resolved from the tag tree; every field is optional."""

    make: Optional[str] = None
    model: Optional[str] = None
    lens: Optional[str] = None
    f_number: Optional[str] = None
    exposure_time: Optional[str] = None
    iso: Optional[str] = None
    focal_length: Optional[str] = None
    date_time_original: Optional[str] = None
    software: Optional[str] = None
    color_space: Optional[str] = None
    flash: Optional[str] = None
    white_balance: Optional[str] = None
    orientation: Optional[str] = None
    dimensions: Optional[str] = None
    gps: Optional[GpsCoordinates] = None

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class TagNormalizer:
    """Turns a decoded tag tree into a flat tag map and the fixed field schema."""

    priorities = FIELD_PRIORITIES

    def normalize(
        self, tag_tree: TagTree | Mapping[str, Any]
    ) -> Tuple[Dict[str, str], NormalizedFields]:
        """
        Args:
            tag_tree: A `TagTree` or the raw decoder mapping.

        Returns:
            A tuple of (flattened tags, resolved fields).
        """
        tree = tag_tree if isinstance(tag_tree, TagTree) else TagTree.from_raw(tag_tree)
        all_tags = self.flatten(tree)
        resolved = {name: self.resolve_field(tree, name) for name in self.priorities}
        return all_tags, NormalizedFields(
            **resolved,
            dimensions=self.extract_dimensions(tree),
            gps=self.extract_gps(tree),
        )

    @staticmethod
    def flatten(tree: TagTree) -> Dict[str, str]:
        """Builds the `"<group> - <tag>"` map in decode order, skipping empty values."""
        all_tags: Dict[str, str] = {}
        for group_name, group in tree.groups.items():
            for tag_name, entry in group.items():
                if value := display_value(entry):
                    all_tags[f"{group_name}{TAG_KEY_SEPARATOR}{tag_name}"] = value
        return all_tags

    def resolve_field(self, tree: TagTree, field_name: str) -> Optional[str]:
        """Returns the first non-empty candidate value for a schema field."""
        for group, tag in self.priorities[field_name]:
            if value := display_value(tree.lookup(group, tag)):
                return value
        return None

    @staticmethod
    def extract_dimensions(tree: TagTree) -> Optional[str]:
        """
        Resolves `"<width> x <height>"` from the `file` group, falling back to
        root-level width/height values.
        """
        width = display_value(tree.lookup("file", WIDTH_TAG))
        height = display_value(tree.lookup("file", HEIGHT_TAG))
        if width and height:
            return f"{width} x {height}"

        width = _root_value(tree.lookup(ROOT, WIDTH_TAG))
        height = _root_value(tree.lookup(ROOT, HEIGHT_TAG))
        if width and height:
            return f"{width} x {height}"
        return None

    @staticmethod
    def extract_gps(tree: TagTree) -> Optional[GpsCoordinates]:
        """Builds coordinates only when both latitude and longitude are present."""
        if not tree.gps:
            return None
        latitude = _as_float(tree.gps.get("Latitude"))
        longitude = _as_float(tree.gps.get("Longitude"))
        if latitude is None or longitude is None:
            if "Latitude" in tree.gps or "Longitude" in tree.gps:
                log.debug("Incomplete GPS position in tag tree; ignoring it.")
            return None
        return GpsCoordinates(
            latitude=latitude,
            longitude=longitude,
            altitude=_as_float(tree.gps.get("Altitude")),
        )


def _root_value(entry: Any) -> str:
    # Root-level dimensions are read from the raw value before the description
    if isinstance(entry, Mapping) and entry.get("value") is not None:
        return str(entry["value"])
    return display_value(entry)


def _as_float(raw: Any) -> Optional[float]:
    if isinstance(raw, Mapping):
        raw = raw.get("value", raw.get("description"))
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None
