import hashlib
import zlib

import pytest

from pixel_exif.exceptions import ResourceUnavailable
from pixel_exif.media.integrity import DigestEngine, crc32_table
from pixel_exif.models.digests import DigestAlgorithm, DigestSet

CHECK_INPUT = b"123456789"


class TestCrc32:
    def test_check_value(self):
        assert DigestEngine.digest(CHECK_INPUT, DigestAlgorithm.CRC32) == "CBF43926"

    def test_empty_input(self):
        assert DigestEngine.digest(b"", "crc32") == "00000000"

    def test_matches_zlib(self, exif_jpeg):
        expected = f"{zlib.crc32(exif_jpeg) & 0xFFFFFFFF:08X}"
        assert DigestEngine.digest(exif_jpeg, "CRC32") == expected

    def test_table_is_built_once_and_immutable(self):
        table = crc32_table()
        assert len(table) == 256
        assert table[1] == 0x77073096
        assert isinstance(table, tuple)
        assert crc32_table() is table


class TestHashDigests:
    @pytest.mark.parametrize(
        "algorithm,hashlib_name,length",
        [
            (DigestAlgorithm.SHA256, "sha256", 64),
            (DigestAlgorithm.SHA512, "sha512", 128),
            (DigestAlgorithm.MD5, "md5", 32),
        ],
    )
    def test_matches_hashlib(self, exif_jpeg, algorithm, hashlib_name, length):
        value = DigestEngine.digest(exif_jpeg, algorithm)
        assert value == hashlib.new(hashlib_name, exif_jpeg).hexdigest()
        assert len(value) == length
        assert value == value.lower()

    def test_accepts_friendly_names(self):
        assert DigestEngine.digest(CHECK_INPUT, "sha256") == DigestEngine.digest(
            CHECK_INPUT, "SHA-256"
        )

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unsupported digest algorithm"):
            DigestEngine.digest(CHECK_INPUT, "sha1")

    def test_released_buffer(self):
        with pytest.raises(ResourceUnavailable):
            DigestEngine.digest(None, DigestAlgorithm.SHA256)


class TestDigestAll:
    @pytest.mark.asyncio
    async def test_computes_all_four(self):
        digests = await DigestEngine.digest_all(CHECK_INPUT)
        assert isinstance(digests, DigestSet)
        assert digests.crc32 == "CBF43926"
        assert digests.sha256 == hashlib.sha256(CHECK_INPUT).hexdigest()
        assert digests.sha512 == hashlib.sha512(CHECK_INPUT).hexdigest()
        assert digests.md5 == hashlib.md5(CHECK_INPUT).hexdigest()
        assert list(digests.as_dict()) == ["SHA-256", "SHA-512", "MD5", "CRC32"]

    @pytest.mark.asyncio
    async def test_subset(self):
        digests = await DigestEngine.digest_all(CHECK_INPUT, [DigestAlgorithm.CRC32])
        assert digests.as_dict() == {"CRC32": "CBF43926"}

    @pytest.mark.asyncio
    async def test_released_buffer(self):
        with pytest.raises(ResourceUnavailable):
            await DigestEngine.digest_all(None)


class TestDigestSet:
    def test_first_value_wins(self):
        digests = DigestSet()
        assert not digests.is_computed(DigestAlgorithm.MD5)
        assert digests.store(DigestAlgorithm.MD5, "aaa") == "aaa"
        assert digests.store(DigestAlgorithm.MD5, "bbb") == "aaa"
        assert digests.md5 == "aaa"
        assert digests.is_computed(DigestAlgorithm.MD5)

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("sha256", DigestAlgorithm.SHA256),
            ("SHA-512", DigestAlgorithm.SHA512),
            (" md5 ", DigestAlgorithm.MD5),
            ("crc-32", DigestAlgorithm.CRC32),
            ("sha_256", DigestAlgorithm.SHA256),
        ],
    )
    def test_parse(self, name, expected):
        assert DigestAlgorithm.parse(name) is expected

    def test_field_name(self):
        assert DigestAlgorithm.SHA512.field_name == "sha512"
        assert DigestAlgorithm.CRC32.field_name == "crc32"
