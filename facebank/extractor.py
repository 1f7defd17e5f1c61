"""
Descriptor Extraction Module

Boundary to the external detection model. A detection backend turns a frame
into candidate detections with descriptors; this module picks the candidate
that matches a requested bounding box.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

BoundingBox = Sequence[float]  # (x, y, width, height)
DetectFn = Callable[[Any], List[Dict[str, Any]]]


def bounding_box_overlap(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Intersection-over-union of two ``(x, y, width, height)`` boxes.

    Returns:
        Overlap in [0, 1]; 0 when the boxes do not intersect
    """
    x1 = max(box1[0], box2[0])
    y1 = max(box1[1], box2[1])
    x2 = min(box1[0] + box1[2], box2[0] + box2[2])
    y2 = min(box1[1] + box1[3], box2[1] + box2[3])

    if x2 <= x1 or y2 <= y1:
        return 0.0

    intersection_area = (x2 - x1) * (y2 - y1)
    union_area = box1[2] * box1[3] + box2[2] * box2[3] - intersection_area

    return float(intersection_area / union_area)


class DescriptorExtractor:
    """Select a descriptor from backend detections by bounding-box overlap."""

    def __init__(self, detect_fn: DetectFn, config: Optional[Dict[str, Any]] = None):
        """
        Initialize descriptor extractor.

        Args:
            detect_fn: Callable mapping a frame to a list of detections, each a
                dict with ``bbox`` (x, y, width, height) and ``descriptor``
            config: Configuration dictionary with extraction settings
        """
        config = config or {}
        self.extraction_config = config.get('extraction', {}) or {}
        self.min_overlap = self.extraction_config.get('min_overlap', 0.5)
        self.detect_fn = detect_fn

    def extract(self, frame: Any, bbox: BoundingBox) -> Optional[np.ndarray]:
        """
        Get the descriptor of the detection best overlapping ``bbox``.

        Args:
            frame: Source frame handed to the backend
            bbox: Bounding box of the face of interest

        Returns:
            Descriptor vector, or None if no detection overlaps enough
        """
        try:
            detections = self.detect_fn(frame)
        except Exception as e:
            logger.error(f"Error extracting face descriptor: {e}")
            return None

        if not detections:
            return None

        best_detection = None
        best_overlap = 0.0

        for detection in detections:
            overlap = bounding_box_overlap(bbox, detection['bbox'])
            if overlap > best_overlap:
                best_overlap = overlap
                best_detection = detection

        if best_detection is None or best_overlap <= self.min_overlap:
            logger.debug(f"No detection overlaps the requested box (best={best_overlap:.2f})")
            return None

        descriptor = best_detection.get('descriptor')
        if descriptor is None:
            return None

        return np.asarray(descriptor, dtype=np.float32)
