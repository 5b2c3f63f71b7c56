# ============================================================================
# src/thermal_log_ocr/core/bbox_utils.py
# ============================================================================
"""
Bounding box utilities for OCR token geometry.

This module provides:
- Bbox validation and plausibility against the image size
- Coverage of one box by another
- Column bands derived from hour header boxes
- Fuzzy lookup of the token that carries a value

Coordinate System:
- All bboxes are stored as (x0, y0, x1, y1) tuples
- Any consistent unit (pixels or 0-1 normalized), (0,0) is top-left
- x0 < x1 (left to right)
- y0 < y1 (top to bottom)
"""

from typing import Dict, Iterable, Optional, Tuple
from difflib import SequenceMatcher
import logging

from .context.geometry import BBox, OcrToken
from ..utils.text_normalizer import parse_hour_label

logger = logging.getLogger(__name__)


def validate_bbox(bbox: Optional[BBox]) -> bool:
    """
    Validate that a bbox is properly formed.

    Args:
        bbox: (x0, y0, x1, y1) tuple

    Returns:
        True if bbox is valid, False otherwise
    """
    if bbox is None:
        return False

    if not isinstance(bbox, (tuple, list)) or len(bbox) != 4:
        return False

    try:
        x0, y0, x1, y1 = bbox
        # Check all are numbers
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in bbox):
            return False
        # Check for NaN or infinity
        if any(v != v or abs(v) == float('inf') for v in bbox):  # NaN check: v != v
            return False
        # Check ordering (x0 <= x1, y0 <= y1)
        if x0 > x1 or y0 > y1:
            return False
        return True
    except (TypeError, ValueError):
        return False


def is_reasonable_bbox(
    bbox: Optional[BBox],
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
) -> bool:
    """
    Whether a bbox could plausibly hold a handwritten value.

    Args:
        bbox: (x0, y0, x1, y1) tuple
        image_width: Optional image width in bbox units
        image_height: Optional image height in bbox units

    Returns:
        False for malformed, empty, negative or out-of-image boxes
    """
    if not validate_bbox(bbox):
        return False

    x0, y0, x1, y1 = bbox
    if bbox_area(bbox) <= 0 or x0 < 0 or y0 < 0:
        return False
    if image_width is not None and x1 > image_width:
        return False
    if image_height is not None and y1 > image_height:
        return False
    return True


def bbox_area(bbox: BBox) -> float:
    """Calculate area of a bbox."""
    if not validate_bbox(bbox):
        return 0.0
    x0, y0, x1, y1 = bbox
    return (x1 - x0) * (y1 - y0)


def bbox_center(bbox: BBox) -> Tuple[float, float]:
    x0, y0, x1, y1 = bbox
    return ((x0 + x1) / 2, (y0 + y1) / 2)


def bbox_coverage(inner: BBox, outer: BBox) -> float:
    """
    Fraction of the inner bbox that lies inside the outer bbox.

    Args:
        inner: Observed box
        outer: Expected box

    Returns:
        Coverage ratio (0-1)
    """
    if not validate_bbox(inner) or not validate_bbox(outer):
        return 0.0

    ix0 = max(inner[0], outer[0])
    iy0 = max(inner[1], outer[1])
    ix1 = min(inner[2], outer[2])
    iy1 = min(inner[3], outer[3])

    if ix0 >= ix1 or iy0 >= iy1:
        return 0.0  # No overlap

    area = bbox_area(inner)
    return (ix1 - ix0) * (iy1 - iy0) / area if area > 0 else 0.0


def text_similarity(text1: str, text2: str) -> float:
    """
    Calculate similarity ratio between two strings.

    Args:
        text1, text2: Strings to compare

    Returns:
        Similarity ratio 0-1
    """
    if not text1 or not text2:
        return 0.0

    t1 = text1.strip().lower()
    t2 = text2.strip().lower()

    if t1 == t2:
        return 1.0

    return SequenceMatcher(None, t1, t2).ratio()


def header_boxes(tokens: Iterable[OcrToken]) -> Dict[str, BBox]:
    """
    Boxes of hour header tokens, keyed by normalized hour label.

    The first token per label wins. Tokens attributed to a field row and
    bare digit runs ("1448") are values, not headers.
    """
    boxes: Dict[str, BBox] = {}
    for token in tokens:
        if token.field_name or not validate_bbox(token.bbox):
            continue
        if token.text.strip().isdigit():
            continue
        label = parse_hour_label(token.text)
        if label and label not in boxes:
            boxes[label] = tuple(token.bbox)
    return boxes


def column_band(boxes: Dict[str, BBox], label: str) -> Optional[Tuple[float, float]]:
    """
    Horizontal band of an hour column.

    Band edges sit halfway between neighbouring header centres; an outer
    column mirrors the distance to its only neighbour.

    Args:
        boxes: Output of header_boxes()
        label: Normalized hour label of the column

    Returns:
        (left, right) in bbox units, or None without at least two headers
    """
    if label not in boxes or len(boxes) < 2:
        return None

    centers = sorted(bbox_center(box)[0] for box in boxes.values())
    center = bbox_center(boxes[label])[0]
    index = centers.index(center)

    if index > 0:
        left = (centers[index - 1] + center) / 2
    else:
        left = center - (centers[index + 1] - center) / 2

    if index < len(centers) - 1:
        right = (center + centers[index + 1]) / 2
    else:
        right = center + (center - centers[index - 1]) / 2

    return (left, right)


def _band_distance(bbox: BBox, band: Optional[Tuple[float, float]]) -> float:
    """Horizontal distance from a box centre to a band (0 inside it)."""
    if band is None or not validate_bbox(bbox):
        return 0.0
    x_center = bbox_center(bbox)[0]
    left, right = band
    return max(left - x_center, x_center - right, 0.0)


def find_value_token(
    tokens: Iterable[OcrToken],
    value_text: str,
    hour_label: Optional[str] = None,
    field_name: Optional[str] = None,
    line: Optional[int] = None,
    band: Optional[Tuple[float, float]] = None,
    fuzzy_threshold: float = 0.8,
) -> Optional[OcrToken]:
    """
    Find the OCR token that carries an extracted value.

    Tokens the recognizer attributed to the same hour and field win
    outright. Otherwise tokens are matched on text similarity, preferring
    the same hour column, then the same line. Equally similar tokens are
    told apart by how close their centre sits to the column band, so a
    value repeated in a neighbouring column is not picked up.

    Args:
        tokens: OCR tokens with bounding boxes
        value_text: Matched text of the value
        hour_label: Normalized hour label of the column
        field_name: Field the value was extracted for
        line: Line of the value in the normalized text
        band: Expected (left, right) x-range of the hour column
        fuzzy_threshold: Minimum similarity for a text match

    Returns:
        Matching token or None
    """
    tokens = [t for t in tokens if t.bbox is not None and not t.is_empty]

    if hour_label and field_name:
        for token in tokens:
            if parse_hour_label(token.hour_label) == hour_label and token.field_name == field_name:
                return token

    best: Optional[OcrToken] = None
    best_key = None
    for token in tokens:
        similarity = text_similarity(token.text, value_text)
        if similarity < fuzzy_threshold:
            continue
        key = (
            bool(hour_label) and parse_hour_label(token.hour_label) == hour_label,
            line is not None and token.line == line,
            similarity,
            -_band_distance(token.bbox, band),
        )
        if best_key is None or key > best_key:
            best, best_key = token, key

    if best is None:
        logger.debug(f"No token found for value {value_text!r}")
    return best
