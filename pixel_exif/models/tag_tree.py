"""
Typed view over the raw tag tree produced by a tag decoder.

The decoder output is a plain mapping of group name -> {tag name -> entry}.
Two group names are reserved and carry different payloads: `gps` holds
computed coordinates and `thumbnail` holds embedded image data. They are
split off here, before any generic flattening happens.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

GPS_GROUP = "gps"
THUMBNAIL_GROUP = "thumbnail"
RESERVED_GROUPS = frozenset({GPS_GROUP, THUMBNAIL_GROUP})

_ENTRY_KEYS = ("description", "value")
# Keys a decoder may attach to an entry besides its description and value
_ENTRY_EXTRA_KEYS = frozenset({"id"})


def is_tag_entry(obj: Any) -> bool:
    """
    True for `{description?, value?}` entries and bare strings/numbers.

    A mapping with any other key is a group, even when one of its tags is
    named `value` or `description`.
    """
    if isinstance(obj, Mapping):
        if any(k not in _ENTRY_KEYS and k not in _ENTRY_EXTRA_KEYS for k in obj):
            return False
        return any(
            k in obj and not isinstance(obj[k], Mapping) for k in _ENTRY_KEYS
        )
    return isinstance(obj, (str, int, float)) and not isinstance(obj, bool)


def _thumbnail_bytes(raw: Any) -> bytes | None:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw) if raw else None
    if isinstance(raw, Mapping):
        for key in ("image", "data"):
            if (data := raw.get(key)) and isinstance(
                data, (bytes, bytearray, memoryview)
            ):
                return bytes(data)
    return None


@dataclass(frozen=True)
class TagTree:
    """
    Decoded tag tree split into its variants.

    Attributes:
        groups: Generic tag groups in decode order.
        root_tags: Tag entries found directly at the top level.
        gps: Raw reserved `gps` group, if any.
        thumbnail: Embedded thumbnail bytes, if any.
    """

    groups: dict[str, Mapping[str, Any]] = field(default_factory=dict)
    root_tags: dict[str, Any] = field(default_factory=dict)
    gps: Mapping[str, Any] | None = None
    thumbnail: bytes | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "TagTree":
        """Splits a raw decoder mapping into reserved and generic parts."""
        groups: dict[str, Mapping[str, Any]] = {}
        root_tags: dict[str, Any] = {}
        gps = None
        thumbnail = None

        for key, payload in (raw or {}).items():
            if key == GPS_GROUP:
                gps = payload if isinstance(payload, Mapping) else None
            elif key == THUMBNAIL_GROUP:
                thumbnail = _thumbnail_bytes(payload)
            elif is_tag_entry(payload):
                root_tags[key] = payload
            elif isinstance(payload, Mapping):
                groups[key] = payload

        return cls(groups=groups, root_tags=root_tags, gps=gps, thumbnail=thumbnail)

    def lookup(self, group: str | None, tag: str) -> Any:
        """Returns the raw entry for a tag; `group=None` addresses root-level tags."""
        if group is None:
            return self.root_tags.get(tag)
        return self.groups.get(group, {}).get(tag)
