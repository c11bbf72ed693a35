"""Perceptual hash fingerprints for quick, resolution-independent comparison."""

from __future__ import annotations

from typing import Dict, Mapping

import imagehash

from ..extract.decode import to_image
from ..io.models import PixelBuffer

_HASH_SIZE = 8
HASH_KINDS = ("ahash", "phash", "dhash")


def compute_hashes(buffer: PixelBuffer) -> Dict[str, str]:
    """Return the perceptual hash variants for *buffer* as hex strings."""
    if buffer.is_empty():
        return {}

    work_img = to_image(buffer).convert("RGB")
    try:
        return {
            "ahash": str(imagehash.average_hash(work_img, hash_size=_HASH_SIZE)),
            "phash": str(imagehash.phash(work_img, hash_size=_HASH_SIZE)),
            "dhash": str(imagehash.dhash(work_img, hash_size=_HASH_SIZE)),
        }
    finally:
        work_img.close()


def hash_distances(
    reference: Mapping[str, str], test: Mapping[str, str]
) -> Dict[str, int]:
    """Return the Hamming distance for every hash kind present on both sides."""
    distances: Dict[str, int] = {}
    for kind in HASH_KINDS:
        left = reference.get(kind)
        right = test.get(kind)
        if left and right:
            distances[kind] = hamming_distance_hex(left, right)
    return distances


def hamming_distance_hex(left: str, right: str) -> int:
    """Return the number of differing bits between two hex-encoded hashes."""
    try:
        return (_hex_value(left) ^ _hex_value(right)).bit_count()
    except ValueError as exc:
        raise ValueError(f"Hash values must be hexadecimal, got {left!r} and {right!r}") from exc


def _hex_value(value: str) -> int:
    if not isinstance(value, str):
        raise TypeError("Hash values must be provided as strings")
    digits = value.strip().lower().removeprefix("0x")
    return int(digits, 16) if digits else 0
