"""
Digest algorithm identifiers and the write-once digest cache owned by a record.
"""

from dataclasses import dataclass, field
from enum import Enum


class DigestAlgorithm(str, Enum):
    """The four supported integrity digests."""

    SHA256 = "SHA-256"
    SHA512 = "SHA-512"
    MD5 = "MD5"
    CRC32 = "CRC32"

    @classmethod
    def parse(cls, name: "str | DigestAlgorithm") -> "DigestAlgorithm":
        """
        Resolves user-friendly names ('sha256', 'SHA-256', 'crc-32') to an algorithm.

        Raises:
            ValueError: If the name matches no supported algorithm.
        """
        if isinstance(name, DigestAlgorithm):
            return name
        key = str(name).strip().upper().replace("-", "").replace("_", "")
        for algorithm in cls:
            if algorithm.value.replace("-", "") == key:
                return algorithm
        supported = ", ".join(a.value for a in cls)
        raise ValueError(f"Unsupported digest algorithm '{name}'. Use one of: {supported}.")

    @property
    def field_name(self) -> str:
        """Attribute name used on DigestSet ('sha256', 'crc32', ...)."""
        return self.value.replace("-", "").lower()


@dataclass
class DigestSet:
    """
    Lazily populated digests of a record's byte buffer.

    Each algorithm is stored at most once; later stores for an algorithm that
    is already computed are ignored, so a value never changes once set.
    """

    _values: dict[DigestAlgorithm, str] = field(default_factory=dict, repr=False)

    def is_computed(self, algorithm: DigestAlgorithm) -> bool:
        return algorithm in self._values

    def get(self, algorithm: DigestAlgorithm) -> str | None:
        return self._values.get(algorithm)

    def store(self, algorithm: DigestAlgorithm, value: str) -> str:
        """Stores a digest if absent and returns the value held by the cache."""
        return self._values.setdefault(algorithm, value)

    @property
    def sha256(self) -> str | None:
        return self.get(DigestAlgorithm.SHA256)

    @property
    def sha512(self) -> str | None:
        return self.get(DigestAlgorithm.SHA512)

    @property
    def md5(self) -> str | None:
        return self.get(DigestAlgorithm.MD5)

    @property
    def crc32(self) -> str | None:
        return self.get(DigestAlgorithm.CRC32)

    def as_dict(self) -> dict[str, str]:
        """Computed digests keyed by their display name, in algorithm order."""
        return {a.value: self._values[a] for a in DigestAlgorithm if a in self._values}
