"""Connected-component detection of difference regions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import numpy as np

from ..errors import DecodeError
from ..extract.decode import decode
from ..features.structure import grayscale
from ..io.models import Region
from ..mathutils import round1, round_int

logger = logging.getLogger(__name__)

DIFF_THRESHOLD = 50
MIN_REGION_SIZE = 100


def find_regions(
    intensity: np.ndarray | bytes,
    width: int,
    height: int,
    threshold: int = DIFF_THRESHOLD,
    min_size: int = MIN_REGION_SIZE,
) -> List[Region]:
    """Return 4-connected regions brighter than *threshold*, in scan order.

    Pixels are scanned row-major from the top-left corner; each unvisited
    qualifying pixel seeds a stack-based flood fill. Components with fewer
    than *min_size* pixels are discarded. Bounding boxes are inclusive.
    """
    if isinstance(intensity, (bytes, bytearray)):
        values = np.frombuffer(intensity, dtype=np.uint8)
    else:
        values = np.asarray(intensity).reshape(-1)
    if values.size != width * height:
        raise ValueError(f"intensity has {values.size} values, expected {width}x{height}")

    mask = values > threshold
    visited = np.zeros(values.size, dtype=bool)
    regions: List[Region] = []

    for seed in np.flatnonzero(mask):
        if visited[seed]:
            continue
        region = _flood_fill(values, mask, visited, int(seed), width, height)
        if region.pixel_count >= min_size:
            regions.append(region)
    return regions


def _flood_fill(
    values: np.ndarray,
    mask: np.ndarray,
    visited: np.ndarray,
    seed: int,
    width: int,
    height: int,
) -> Region:
    stack = [seed]
    visited[seed] = True
    min_x = max_x = seed % width
    min_y = max_y = seed // width
    count = 0
    total_intensity = 0

    while stack:
        index = stack.pop()
        y, x = divmod(index, width)
        count += 1
        total_intensity += int(values[index])
        min_x = min(min_x, x)
        max_x = max(max_x, x)
        min_y = min(min_y, y)
        max_y = max(max_y, y)

        neighbours = []
        if x + 1 < width:
            neighbours.append(index + 1)
        if x > 0:
            neighbours.append(index - 1)
        if y + 1 < height:
            neighbours.append(index + width)
        if y > 0:
            neighbours.append(index - width)
        for neighbour in neighbours:
            if mask[neighbour] and not visited[neighbour]:
                visited[neighbour] = True
                stack.append(neighbour)

    return Region(
        x=min_x,
        y=min_y,
        width=max_x - min_x + 1,
        height=max_y - min_y + 1,
        pixel_count=count,
        intensity=total_intensity / count,
    )


def classify_region(region: Region) -> str:
    """Guess what kind of change a region represents from its shape."""
    aspect_ratio = region.width / region.height if region.height else float("inf")
    if aspect_ratio > 3 or aspect_ratio < 0.33:
        # long thin strips usually come from shifted layout
        return "layout"
    if region.width < 50 and region.height < 50:
        return "typography"
    if region.width > 200 and region.height > 200:
        return "imagery"
    return "color"


def region_confidence(region: Region) -> int:
    size_score = min(region.pixel_count / 1000, 1.0)
    intensity_score = region.intensity / 255
    return round_int((size_score * 0.6 + intensity_score * 0.4) * 100)


def classify_regions(regions: List[Region]) -> List[Region]:
    """Fill in ``type`` and ``confidence`` and round the mean intensity."""
    for region in regions:
        region.type = classify_region(region)
        region.confidence = region_confidence(region)
        region.intensity = round1(region.intensity)
    return regions


def detect_regions(
    intensity: np.ndarray,
    threshold: int = DIFF_THRESHOLD,
    min_size: int = MIN_REGION_SIZE,
) -> List[Region]:
    """Find and classify regions on a 2-D intensity map."""
    height, width = intensity.shape[:2]
    return classify_regions(find_regions(intensity, width, height, threshold, min_size))


def analyze_difference_image(path: str | Path) -> List[Region]:
    """Return classified regions for a diff image on disk.

    A missing image yields no regions; an unreadable one is logged and also
    yields no regions.
    """
    source = Path(path)
    if not source.exists():
        return []
    try:
        buffer = decode(source)
    except DecodeError:
        logger.warning("Cannot read diff image %s", source, exc_info=True)
        return []
    if buffer.is_empty():
        return []
    return detect_regions(grayscale(buffer))
