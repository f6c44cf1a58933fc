# tests/conftest.py
from __future__ import annotations

# Import/bootstrap so "import pixel_exif" works when running pytest from repo root
import io
import struct
import sys
from pathlib import Path

import piexif
import pytest
from PIL import Image, ImageCms
from PIL.PngImagePlugin import PngInfo

TESTS_DIR = Path(__file__).resolve().parent
REPO_ROOT = TESTS_DIR.parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pixel_exif.models.source import SourceFile  # noqa: E402

# 40°26'46.32"N 79°58'56.16"W, 300 m
GPS_LATITUDE = 40 + 26 / 60 + 46.32 / 3600
GPS_LONGITUDE = -(79 + 58 / 60 + 56.16 / 3600)
GPS_ALTITUDE = 300.0


def encode_image(
    color=(0, 0, 0),
    size: tuple[int, int] = (64, 32),
    fmt: str = "PNG",
    mode: str = "RGB",
    **save_kwargs,
) -> bytes:
    """Encodes a solid-color image in memory."""
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, fmt, **save_kwargs)
    return buf.getvalue()


def build_exif(
    with_gps: bool = True, with_thumbnail: bool = True, latitude_only: bool = False
) -> bytes:
    """A camera-like EXIF block: IFD0, Exif IFD, optional GPS and thumbnail."""
    exif_dict = {
        "0th": {
            piexif.ImageIFD.Make: "Canon",
            piexif.ImageIFD.Model: "EOS R",
            piexif.ImageIFD.Orientation: 1,
            piexif.ImageIFD.Software: "Firmware 1.8.0",
            piexif.ImageIFD.DateTime: "2024:05:01 10:11:12",
        },
        "Exif": {
            piexif.ExifIFD.DateTimeOriginal: "2024:05:01 10:11:12",
            piexif.ExifIFD.FNumber: (28, 10),
            piexif.ExifIFD.ExposureTime: (1, 125),
            piexif.ExifIFD.ISOSpeedRatings: 400,
            piexif.ExifIFD.FocalLength: (50, 1),
            piexif.ExifIFD.Flash: 0,
            piexif.ExifIFD.WhiteBalance: 0,
            piexif.ExifIFD.ColorSpace: 1,
            piexif.ExifIFD.LensModel: "RF24-105mm F4 L IS USM",
        },
        "GPS": {},
        "1st": {},
        "thumbnail": None,
    }
    if with_gps:
        exif_dict["GPS"] = {
            piexif.GPSIFD.GPSLatitudeRef: "N",
            piexif.GPSIFD.GPSLatitude: ((40, 1), (26, 1), (4632, 100)),
        }
        if not latitude_only:
            exif_dict["GPS"].update(
                {
                    piexif.GPSIFD.GPSLongitudeRef: "W",
                    piexif.GPSIFD.GPSLongitude: ((79, 1), (58, 1), (5616, 100)),
                    piexif.GPSIFD.GPSAltitudeRef: 0,
                    piexif.GPSIFD.GPSAltitude: (300, 1),
                }
            )
    if with_thumbnail:
        exif_dict["thumbnail"] = encode_image((255, 255, 255), (16, 8), "JPEG")
    return piexif.dump(exif_dict)


@pytest.fixture
def black_png() -> bytes:
    return encode_image((0, 0, 0))


@pytest.fixture
def white_png() -> bytes:
    return encode_image((255, 255, 255))


@pytest.fixture
def plain_jpeg() -> bytes:
    return encode_image((120, 60, 30), fmt="JPEG")


@pytest.fixture
def exif_jpeg() -> bytes:
    return encode_image((120, 60, 30), fmt="JPEG", exif=build_exif())


@pytest.fixture
def text_png() -> bytes:
    info = PngInfo()
    info.add_text("Author", "Jane Roe")
    info.add_text("Comment", "")
    return encode_image((10, 20, 30), pnginfo=info)


@pytest.fixture
def corrupt_bytes() -> bytes:
    return b"\x00\x01this is not an image at all\xff" * 8


@pytest.fixture
def make_source():
    """Factory for in-memory source files."""

    def _make(name: str, data: bytes, mime_type: str = "") -> SourceFile:
        return SourceFile(name=name, data=data, mime_type=mime_type)

    return _make


XMP_PACKET = """<?xpacket begin="" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
 <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
  <rdf:Description rdf:about=""
    xmlns:xmp="http://ns.adobe.com/xap/1.0/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmp:CreatorTool="Darktable 4.6">
   <dc:subject>
    <rdf:Bag>
     <rdf:li>harbor</rdf:li>
     <rdf:li>night</rdf:li>
    </rdf:Bag>
   </dc:subject>
   <xmp:Rating>4</xmp:Rating>
  </rdf:Description>
 </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>"""


def insert_iptc(jpeg: bytes, datasets: list[tuple[int, bytes]]) -> bytes:
    """Adds a Photoshop APP13 segment carrying IPTC record-2 datasets."""
    iptc = b"".join(
        b"\x1c\x02" + bytes([dataset]) + struct.pack(">H", len(value)) + value
        for dataset, value in datasets
    )
    resource = b"8BIM\x04\x04\x00\x00" + struct.pack(">I", len(iptc)) + iptc
    if len(iptc) % 2:
        resource += b"\x00"
    payload = b"Photoshop 3.0\x00" + resource
    segment = b"\xff\xed" + struct.pack(">H", len(payload) + 2) + payload
    return jpeg[:2] + segment + jpeg[2:]


@pytest.fixture
def iptc_jpeg() -> bytes:
    return insert_iptc(
        encode_image((90, 90, 90), fmt="JPEG"),
        [
            (5, b"Harbor at night"),
            (25, b"harbor"),
            (25, b"night"),
            (80, b"Jane Roe"),
        ],
    )


@pytest.fixture
def xmp_png() -> bytes:
    info = PngInfo()
    info.add_itxt("XML:com.adobe.xmp", XMP_PACKET)
    return encode_image((10, 20, 30), pnginfo=info)


@pytest.fixture
def icc_png() -> bytes:
    profile = ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))
    return encode_image((10, 20, 30), icc_profile=profile.tobytes())
