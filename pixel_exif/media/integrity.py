"""
Provides digest computation for verifying the integrity of image files.
"""

import asyncio
import hashlib
import logging
from functools import lru_cache

from pixel_exif.exceptions import ResourceUnavailable
from pixel_exif.models.digests import DigestAlgorithm, DigestSet

log = logging.getLogger(__name__)

# Reflected form of the CRC-32/ISO-HDLC polynomial 0x04C11DB7
CRC32_POLYNOMIAL = 0xEDB88320
CRC32_MASK = 0xFFFFFFFF


@lru_cache(maxsize=None)
def crc32_table() -> tuple[int, ...]:
    """
    Builds the 256-entry CRC-32 lookup table.

    Built once per process on first use; the tuple is immutable, so it is
    safe to read from any number of concurrent digest computations.
    """
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (CRC32_POLYNOMIAL ^ (c >> 1)) if c & 1 else (c >> 1)
        table.append(c)
    return tuple(table)


def _crc32_hex(data: bytes | memoryview) -> str:
    table = crc32_table()
    crc = CRC32_MASK
    for byte in data:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return f"{crc ^ CRC32_MASK:08X}"


_HASHLIB_NAMES = {
    DigestAlgorithm.SHA256: "sha256",
    DigestAlgorithm.SHA512: "sha512",
    DigestAlgorithm.MD5: "md5",
}


class DigestEngine:
    """A collection of static methods computing file digests over a byte buffer."""

    @staticmethod
    def digest(
        data: bytes | memoryview | None, algorithm: DigestAlgorithm | str
    ) -> str:
        """
        Computes a single digest.

        Args:
            data: The file contents. None means the buffer was already released.
            algorithm: Which digest to compute.

        Returns:
            Lowercase hex for SHA-256, SHA-512 and MD5; 8-digit uppercase hex
            for CRC32.

        Raises:
            ResourceUnavailable: If no buffer is available.
            ValueError: If the algorithm is unknown.
        """
        if data is None:
            raise ResourceUnavailable("No byte buffer available for digest computation.")
        algorithm = DigestAlgorithm.parse(algorithm)

        if algorithm is DigestAlgorithm.CRC32:
            return _crc32_hex(data)
        if algorithm is DigestAlgorithm.MD5:
            # Legacy comparison only; not a security check
            return hashlib.md5(data, usedforsecurity=False).hexdigest()
        return hashlib.new(_HASHLIB_NAMES[algorithm], data).hexdigest()

    @staticmethod
    async def digest_async(
        data: bytes | memoryview | None, algorithm: DigestAlgorithm | str
    ) -> str:
        """Computes a digest in a worker thread so large buffers don't block the loop."""
        return await asyncio.to_thread(DigestEngine.digest, data, algorithm)

    @staticmethod
    async def digest_all(
        data: bytes | memoryview | None,
        algorithms: list[DigestAlgorithm] | None = None,
    ) -> DigestSet:
        """
        Computes several digests concurrently over the same buffer.

        The buffer is wrapped once in a read-only memoryview and shared by all
        computations; nothing is copied.
        """
        if data is None:
            raise ResourceUnavailable("No byte buffer available for digest computation.")
        algorithms = algorithms or list(DigestAlgorithm)
        view = memoryview(data).toreadonly()

        results = await asyncio.gather(
            *(DigestEngine.digest_async(view, a) for a in algorithms)
        )

        digests = DigestSet()
        for algorithm, value in zip(algorithms, results):
            digests.store(algorithm, value)
        log.debug(f"Computed {len(algorithms)} digests over {len(view)} bytes.")
        return digests
