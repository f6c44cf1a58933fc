import pytest

from pixel_exif.core.normalizer import (
    FIELD_PRIORITIES,
    ROOT,
    TagNormalizer,
    display_value,
)
from pixel_exif.models.tag_tree import TagTree


def _entry(description=None, value=None):
    entry = {}
    if description is not None:
        entry["description"] = description
    if value is not None:
        entry["value"] = value
    return entry


def _tree_with(candidates):
    """Builds a raw tree where each (group, tag) candidate holds its own label."""
    raw = {}
    for group, tag in candidates:
        label = f"{group or 'root'}.{tag}"
        if group is ROOT:
            raw[tag] = _entry(description=label)
        else:
            raw.setdefault(group, {})[tag] = _entry(description=label)
    return raw


@pytest.fixture
def normalizer():
    return TagNormalizer()


class TestDisplayValue:
    def test_description_first(self):
        assert display_value({"description": "f/2.8", "value": (28, 10)}) == "f/2.8"

    def test_value_when_no_description(self):
        assert display_value({"value": 400}) == "400"

    def test_bare_primitives(self):
        assert display_value("Canon") == "Canon"
        assert display_value(3.5) == "3.5"

    def test_unusable_entries(self):
        assert display_value(None) == ""
        assert display_value(True) == ""
        assert display_value({}) == ""
        assert display_value([1, 2]) == ""


class TestFlatten:
    def test_keys_and_order(self, normalizer):
        raw = {
            "file": {"FileType": _entry("JPEG"), "Image Width": _entry("64px", 64)},
            "exif": {"Make": _entry("Canon"), "ISOSpeedRatings": {"value": 400}},
            "iptc": {"Keywords": "beach"},
        }
        all_tags, _ = normalizer.normalize(raw)
        assert list(all_tags.items()) == [
            ("file - FileType", "JPEG"),
            ("file - Image Width", "64px"),
            ("exif - Make", "Canon"),
            ("exif - ISOSpeedRatings", "400"),
            ("iptc - Keywords", "beach"),
        ]

    def test_no_empty_values(self, normalizer):
        raw = {
            "exif": {
                "Artist": _entry(""),
                "Copyright": {"value": ""},
                "Make": _entry("Canon"),
                "Nothing": {},
            }
        }
        all_tags, _ = normalizer.normalize(raw)
        assert all_tags == {"exif - Make": "Canon"}
        assert all(all_tags.values())

    def test_reserved_and_root_entries_excluded(self, normalizer):
        raw = {
            "gps": {"Latitude": 1.0, "Longitude": 2.0},
            "thumbnail": b"\xff\xd8\xff",
            "Make": _entry("Root Make"),
            "exif": {"Model": _entry("EOS R")},
        }
        all_tags, _ = normalizer.normalize(raw)
        assert all_tags == {"exif - Model": "EOS R"}

    def test_tags_named_like_entry_keys(self, normalizer):
        raw = {"png": {"value": "x", "Author": "Jane"}}
        all_tags, _ = normalizer.normalize(raw)
        assert all_tags == {"png - value": "x", "png - Author": "Jane"}

    def test_input_not_mutated(self, normalizer):
        raw = {"exif": {"Make": _entry("Canon")}, "gps": {"Latitude": 1.0}}
        snapshot = {"exif": {"Make": {"description": "Canon"}}, "gps": {"Latitude": 1.0}}
        normalizer.normalize(raw)
        assert raw == snapshot


class TestFieldPriorities:
    @pytest.mark.parametrize("field_name", sorted(FIELD_PRIORITIES))
    def test_every_candidate_in_order(self, normalizer, field_name):
        candidates = list(FIELD_PRIORITIES[field_name])
        for i, (group, tag) in enumerate(candidates):
            tree = TagTree.from_raw(_tree_with(candidates[i:]))
            assert normalizer.resolve_field(tree, field_name) == f"{group or 'root'}.{tag}"

    def test_exif_make_beats_tiff_make(self, normalizer):
        raw = {"exif": {"Make": _entry("Canon")}, "tiff": {"Make": _entry("Nikon")}}
        _, fields = normalizer.normalize(raw)
        assert fields.make == "Canon"

    def test_root_fallback_before_tiff(self, normalizer):
        raw = {"Make": _entry("Root Make"), "tiff": {"Make": _entry("Nikon")}}
        _, fields = normalizer.normalize(raw)
        assert fields.make == "Root Make"

    def test_empty_candidate_is_skipped(self, normalizer):
        raw = {"exif": {"Make": _entry("")}, "tiff": {"Make": _entry("Nikon")}}
        _, fields = normalizer.normalize(raw)
        assert fields.make == "Nikon"

    def test_date_fallback_chain(self, normalizer):
        raw = {
            "exif": {"CreateDate": _entry("2023:01:01 00:00:00")},
            "tiff": {"DateTime": _entry("2020:01:01 00:00:00")},
        }
        _, fields = normalizer.normalize(raw)
        assert fields.date_time_original == "2023:01:01 00:00:00"

    def test_absent_fields_are_none(self, normalizer):
        _, fields = normalizer.normalize({"file": {"FileType": _entry("PNG")}})
        assert all(value is None for value in fields.as_dict().values())


class TestDimensions:
    def test_from_file_group(self, normalizer):
        raw = {
            "file": {
                "Image Width": _entry("4000px", 4000),
                "Image Height": _entry("3000px", 3000),
            }
        }
        _, fields = normalizer.normalize(raw)
        assert fields.dimensions == "4000px x 3000px"

    def test_root_fallback_prefers_value(self, normalizer):
        raw = {
            "Image Width": _entry("640 pixels", 640),
            "Image Height": _entry("480 pixels", 480),
        }
        _, fields = normalizer.normalize(raw)
        assert fields.dimensions == "640 x 480"

    def test_incomplete_file_group_falls_back(self, normalizer):
        raw = {
            "file": {"Image Width": _entry("10px", 10)},
            "Image Width": 20,
            "Image Height": 30,
        }
        _, fields = normalizer.normalize(raw)
        assert fields.dimensions == "20 x 30"

    def test_missing(self, normalizer):
        _, fields = normalizer.normalize({"file": {"Image Width": _entry("10px", 10)}})
        assert fields.dimensions is None


class TestGps:
    def test_complete_position(self, normalizer):
        raw = {"gps": {"Latitude": 48.8584, "Longitude": 2.2945, "Altitude": 35.0}}
        _, fields = normalizer.normalize(raw)
        assert fields.gps.latitude == 48.8584
        assert fields.gps.longitude == 2.2945
        assert fields.gps.altitude == 35.0

    def test_latitude_without_longitude(self, normalizer):
        _, fields = normalizer.normalize({"gps": {"Latitude": 48.8584}})
        assert fields.gps is None

    def test_non_numeric_coordinate(self, normalizer):
        _, fields = normalizer.normalize({"gps": {"Latitude": "north", "Longitude": 2.0}})
        assert fields.gps is None

    def test_zero_is_a_valid_coordinate(self, normalizer):
        _, fields = normalizer.normalize({"gps": {"Latitude": 0.0, "Longitude": 0.0}})
        assert fields.gps is not None
        assert fields.gps.altitude is None

    def test_only_reserved_group_counts(self, normalizer):
        raw = {"gpsinfo": {"Latitude": 1.0, "Longitude": 2.0}}
        _, fields = normalizer.normalize(raw)
        assert fields.gps is None
