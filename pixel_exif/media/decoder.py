"""
Decodes an image's embedded metadata into a raw tag tree.

Pillow identifies the container and its dimensions and exposes the IPTC,
XMP and ICC blocks; piexif decodes the EXIF IFDs. The result is a plain
mapping of group name -> {tag name -> entry}, where each entry carries the
raw `value` and a human-readable `description`.
"""

import asyncio
import io
import logging
import struct
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

import piexif
from PIL import Image, ImageCms, IptcImagePlugin

from pixel_exif.models.tag_tree import GPS_GROUP, THUMBNAIL_GROUP

log = logging.getLogger(__name__)

# piexif IFD name -> tag group name in the decoded tree. IFD0 and the Exif IFD
# share one group, as camera tags are split across both.
IFD_GROUPS = {
    "0th": "exif",
    "Exif": "exif",
    "Interop": "interoperability",
    "GPS": "gpsinfo",
}

MAX_TEXT_LENGTH = 256

# PNG info keys that are decoded into their own groups
PNG_SKIPPED_KEYS = frozenset({"exif", "xmp", "XML:com.adobe.xmp"})

# IPTC-IIM (record, dataset) -> tag name
IPTC_DATASETS = {
    (2, 0): "ApplicationRecordVersion",
    (2, 5): "ObjectName",
    (2, 15): "Category",
    (2, 25): "Keywords",
    (2, 40): "SpecialInstructions",
    (2, 55): "DateCreated",
    (2, 60): "TimeCreated",
    (2, 80): "By-line",
    (2, 85): "By-lineTitle",
    (2, 90): "City",
    (2, 95): "Province-State",
    (2, 101): "Country-PrimaryLocationName",
    (2, 105): "Headline",
    (2, 110): "Credit",
    (2, 115): "Source",
    (2, 116): "CopyrightNotice",
    (2, 120): "Caption-Abstract",
    (2, 122): "Writer-Editor",
}

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
XMP_PREFIXES = {
    "http://purl.org/dc/elements/1.1/": "dc",
    "http://ns.adobe.com/xap/1.0/": "xmp",
    "http://ns.adobe.com/xap/1.0/mm/": "xmpMM",
    "http://ns.adobe.com/xap/1.0/rights/": "xmpRights",
    "http://ns.adobe.com/photoshop/1.0/": "photoshop",
    "http://ns.adobe.com/exif/1.0/": "exif",
    "http://ns.adobe.com/exif/1.0/aux/": "aux",
    "http://ns.adobe.com/tiff/1.0/": "tiff",
    "http://ns.adobe.com/lightroom/1.0/": "lr",
    "http://ns.adobe.com/camera-raw-settings/1.0/": "crs",
    "http://iptc.org/std/Iptc4xmpCore/1.0/xmlns/": "Iptc4xmpCore",
}

ORIENTATION_NAMES = {
    1: "Horizontal (normal)",
    2: "Mirror horizontal",
    3: "Rotate 180",
    4: "Mirror vertical",
    5: "Mirror horizontal and rotate 270 CW",
    6: "Rotate 90 CW",
    7: "Mirror horizontal and rotate 90 CW",
    8: "Rotate 270 CW",
}
WHITE_BALANCE_NAMES = {0: "Auto", 1: "Manual"}
COLOR_SPACE_NAMES = {1: "sRGB", 2: "Adobe RGB", 65535: "Uncalibrated"}
RESOLUTION_UNIT_NAMES = {1: "None", 2: "inches", 3: "cm"}
EXPOSURE_PROGRAM_NAMES = {
    0: "Not defined",
    1: "Manual",
    2: "Normal program",
    3: "Aperture priority",
    4: "Shutter priority",
    5: "Creative program",
    6: "Action program",
    7: "Portrait mode",
    8: "Landscape mode",
}
METERING_MODE_NAMES = {
    0: "Unknown",
    1: "Average",
    2: "Center weighted average",
    3: "Spot",
    4: "Multi-spot",
    5: "Pattern",
    6: "Partial",
    255: "Other",
}
ENUM_TAGS = {
    "Orientation": ORIENTATION_NAMES,
    "WhiteBalance": WHITE_BALANCE_NAMES,
    "ColorSpace": COLOR_SPACE_NAMES,
    "ResolutionUnit": RESOLUTION_UNIT_NAMES,
    "ExposureProgram": EXPOSURE_PROGRAM_NAMES,
    "MeteringMode": METERING_MODE_NAMES,
}


def _is_rational(value: Any) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 2
        and all(isinstance(v, int) for v in value)
    )


def _rational_to_float(value: Any) -> Optional[float]:
    if _is_rational(value):
        num, den = value
        if not den:
            return None
        return num / den
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _plain_number(x: float) -> str:
    if x == int(x):
        return str(int(x))
    return f"{x:.4f}".rstrip("0").rstrip(".")


def _describe_flash(value: int) -> str:
    if value == 0:
        return "No Flash"
    if value == 32:
        return "No flash function"
    parts = ["On, Fired" if value & 0x01 else "Off, Did not fire"]
    if value & 0x01:
        return_type = (value >> 1) & 0x03
        if return_type == 2:
            parts.append("Return not detected")
        elif return_type == 3:
            parts.append("Return detected")
        if value & 0x40:
            parts.append("Red-eye reduction")
    return " | ".join(parts)


def _describe_bytes(value: bytes) -> str:
    text = value.rstrip(b"\x00").decode("utf-8", errors="replace").strip()
    if text and text.isprintable() and len(text) <= MAX_TEXT_LENGTH:
        return text
    return f"(Binary data {len(value)} bytes)"


def describe_value(tag_name: str, value: Any) -> str:
    """Formats a raw EXIF value the way a human expects to read it."""
    if isinstance(value, bytes):
        return _describe_bytes(value)

    if tag_name == "Flash" and isinstance(value, int):
        return _describe_flash(value)
    if (names := ENUM_TAGS.get(tag_name)) and isinstance(value, int):
        return names.get(value, str(value))

    if _is_rational(value):
        number = _rational_to_float(value)
        if number is None:
            return f"{value[0]}/{value[1]}"
        if tag_name == "FNumber":
            return f"f/{_plain_number(number)}"
        if tag_name == "ExposureTime":
            if 0 < number < 1:
                return f"1/{round(1 / number)}"
            return _plain_number(number)
        if tag_name == "FocalLength":
            return f"{_plain_number(number)} mm"
        return _plain_number(number)

    if isinstance(value, tuple):
        return ", ".join(describe_value(tag_name, v) for v in value)
    return str(value)


def _tag_name(ifd: str, tag_id: int) -> str:
    info = piexif.TAGS.get(ifd, {}).get(tag_id)
    return info["name"] if info else f"Tag0x{tag_id:04X}"


def _dms_to_degrees(dms: Any, ref: Any, negative_refs: tuple[bytes, ...]) -> Optional[float]:
    if not isinstance(dms, tuple) or len(dms) != 3:
        return None
    parts = [_rational_to_float(p) for p in dms]
    if any(p is None for p in parts):
        return None
    degrees = parts[0] + parts[1] / 60 + parts[2] / 3600
    if isinstance(ref, str):
        ref = ref.encode("ascii", errors="ignore")
    if isinstance(ref, bytes) and ref.rstrip(b"\x00").upper() in negative_refs:
        degrees = -degrees
    return degrees


def gps_coordinates(gps_ifd: Dict[int, Any]) -> Dict[str, float]:
    """Converts a raw GPS IFD into decimal-degree Latitude/Longitude/Altitude."""
    coords: Dict[str, float] = {}
    lat = _dms_to_degrees(
        gps_ifd.get(piexif.GPSIFD.GPSLatitude),
        gps_ifd.get(piexif.GPSIFD.GPSLatitudeRef),
        (b"S",),
    )
    lon = _dms_to_degrees(
        gps_ifd.get(piexif.GPSIFD.GPSLongitude),
        gps_ifd.get(piexif.GPSIFD.GPSLongitudeRef),
        (b"W",),
    )
    alt = _rational_to_float(gps_ifd.get(piexif.GPSIFD.GPSAltitude))
    if lat is not None:
        coords["Latitude"] = lat
    if lon is not None:
        coords["Longitude"] = lon
    if alt is not None:
        if gps_ifd.get(piexif.GPSIFD.GPSAltitudeRef) == 1:
            alt = -alt
        coords["Altitude"] = alt
    return coords


def _xmp_name(tag: str) -> str:
    if tag.startswith("{"):
        namespace, local = tag[1:].split("}", 1)
        prefix = XMP_PREFIXES.get(namespace)
        return f"{prefix}:{local}" if prefix else local
    return tag


def xmp_properties(packet: bytes | str) -> Dict[str, str]:
    """
    Reads the simple properties of an XMP packet.

    Attribute-style and element-style properties of every `rdf:Description`
    are returned as `prefix:Name` -> text. Bag, Seq and Alt arrays are joined
    with ", ".

    Raises:
        xml.etree.ElementTree.ParseError: If the packet is not well-formed XML.
    """
    if isinstance(packet, str):
        packet = packet.encode("utf-8")
    root = ET.fromstring(packet)

    properties: Dict[str, str] = {}
    for description in root.iter(f"{{{RDF_NS}}}Description"):
        for name, value in description.attrib.items():
            if not name.startswith(f"{{{RDF_NS}}}") and value.strip():
                properties[_xmp_name(name)] = value.strip()
        for child in description:
            items = [
                li.text.strip()
                for li in child.iter(f"{{{RDF_NS}}}li")
                if li.text and li.text.strip()
            ]
            text = ", ".join(items) if items else (child.text or "").strip()
            if text:
                properties[_xmp_name(child.tag)] = text
    return properties


def iptc_group(iptc: Dict[tuple[int, int], Any]) -> Dict[str, Any]:
    """Names and decodes the datasets returned by `IptcImagePlugin.getiptcinfo`."""
    group: Dict[str, Any] = {}
    for (record, dataset), value in iptc.items():
        name = IPTC_DATASETS.get((record, dataset), f"Dataset {record}:{dataset}")
        values = value if isinstance(value, list) else [value]
        description = ", ".join(
            _describe_bytes(v) if isinstance(v, bytes) else str(v) for v in values
        )
        group[name] = {"value": value, "description": description}
    return group


def icc_group(icc_profile: bytes) -> Dict[str, Any]:
    """
    Describes an embedded ICC profile.

    Raises:
        PIL.ImageCms.PyCMSError: If the profile cannot be parsed.
    """
    profile = ImageCms.ImageCmsProfile(io.BytesIO(icc_profile))
    fields = {
        "ProfileDescription": ImageCms.getProfileDescription(profile),
        "ProfileManufacturer": ImageCms.getProfileManufacturer(profile),
        "ProfileModel": ImageCms.getProfileModel(profile),
        "ProfileCopyright": ImageCms.getProfileCopyright(profile),
        "ColorSpaceData": profile.profile.xcolor_space,
    }
    group: Dict[str, Any] = {
        name: {"value": text.strip(), "description": text.strip()}
        for name, text in fields.items()
        if text and text.strip()
    }
    group["ProfileSize"] = {
        "value": len(icc_profile),
        "description": f"{len(icc_profile)} bytes",
    }
    return group


class TagTreeDecoder:
    """Builds a raw tag tree from image bytes with Pillow and piexif."""

    async def decode_async(self, data: bytes, filename: str = "") -> Dict[str, Any]:
        """Runs `decode` in a worker thread."""
        return await asyncio.to_thread(self.decode, data, filename)

    def decode(self, data: bytes, filename: str = "") -> Dict[str, Any]:
        """
        Decodes all metadata groups of an image.

        Raises:
            PIL.UnidentifiedImageError: If Pillow does not recognize the data.
            OSError: If the container is truncated or unreadable.
        """
        with Image.open(io.BytesIO(data)) as img:
            tree: Dict[str, Any] = {"file": self._file_group(img)}
            if img.format in ("JPEG", "MPO", "TIFF"):
                exif_source = data
            else:
                exif_source = img.info.get("exif")
            if img.format == "PNG":
                if text_group := self._png_text_group(img.info):
                    tree["png"] = text_group
            self._add_iptc_group(tree, img, filename)
            self._add_xmp_group(tree, img.info, filename)
            self._add_icc_group(tree, img.info, filename)

        if exif_source:
            self._add_exif_groups(tree, exif_source, filename)
        return tree

    @staticmethod
    def _file_group(img: Image.Image) -> Dict[str, Any]:
        width, height = img.size
        group: Dict[str, Any] = {
            "FileType": {"value": img.format, "description": img.format or "Unknown"},
            "Image Width": {"value": width, "description": f"{width}px"},
            "Image Height": {"value": height, "description": f"{height}px"},
            "Color Mode": {"value": img.mode, "description": img.mode},
        }
        if mime := img.get_format_mimetype():
            group["MIMEType"] = {"value": mime, "description": mime}
        return group

    @staticmethod
    def _png_text_group(info: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: {"value": value, "description": value}
            for key, value in info.items()
            if isinstance(value, str) and key not in PNG_SKIPPED_KEYS
        }

    @staticmethod
    def _add_iptc_group(tree: Dict[str, Any], img: Image.Image, filename: str) -> None:
        try:
            iptc = IptcImagePlugin.getiptcinfo(img)
        except (SyntaxError, ValueError, OSError) as e:
            log.warning(f"Ignoring unreadable IPTC block in '{filename}': {e}")
            return
        if iptc:
            tree["iptc"] = iptc_group(iptc)

    @staticmethod
    def _add_xmp_group(tree: Dict[str, Any], info: Dict[str, Any], filename: str) -> None:
        packet = info.get("xmp") or info.get("XML:com.adobe.xmp")
        if not packet:
            return
        try:
            properties = xmp_properties(packet)
        except ET.ParseError as e:
            log.warning(f"Ignoring malformed XMP packet in '{filename}': {e}")
            return
        if properties:
            tree["xmp"] = {
                name: {"value": text, "description": text}
                for name, text in properties.items()
            }

    @staticmethod
    def _add_icc_group(tree: Dict[str, Any], info: Dict[str, Any], filename: str) -> None:
        if not (icc_profile := info.get("icc_profile")):
            return
        try:
            tree["icc"] = icc_group(icc_profile)
        except (ImageCms.PyCMSError, OSError) as e:
            log.warning(f"Ignoring unreadable ICC profile in '{filename}': {e}")

    def _add_exif_groups(self, tree: Dict[str, Any], source: bytes, filename: str) -> None:
        try:
            exif = piexif.load(source)
        except (piexif.InvalidImageDataError, ValueError, OSError, struct.error) as e:
            # The container itself decoded; only its EXIF block is unusable
            log.warning(f"Ignoring unreadable EXIF block in '{filename}': {e}")
            return

        for ifd, group_name in IFD_GROUPS.items():
            ifd_data = exif.get(ifd) or {}
            group = {}
            for tag_id, value in ifd_data.items():
                name = _tag_name(ifd, tag_id)
                group[name] = {"value": value, "description": describe_value(name, value)}
            if group:
                tree.setdefault(group_name, {}).update(group)

        if gps := gps_coordinates(exif.get("GPS") or {}):
            tree[GPS_GROUP] = gps
        if thumbnail := exif.get("thumbnail"):
            tree[THUMBNAIL_GROUP] = thumbnail
