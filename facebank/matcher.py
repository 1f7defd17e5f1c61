"""
Face Matching Module

Nearest-neighbour search of a query embedding against every stored embedding,
with Euclidean distance and an exponential distance-to-confidence transform.
"""

import logging
import math
import time
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Any

import numpy as np
from sklearn.metrics.pairwise import paired_euclidean_distances

from .vector_store import DescriptorStore

logger = logging.getLogger(__name__)


class FacebankError(Exception):
    """Base class for facebank errors."""


class DescriptorLengthError(FacebankError, ValueError):
    """Two embeddings of different lengths were compared."""


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


def euclidean_distance(desc1: np.ndarray, desc2: np.ndarray) -> float:
    """
    Euclidean distance between two embeddings.

    Raises:
        DescriptorLengthError: if the embeddings differ in length
    """
    if len(desc1) != len(desc2):
        raise DescriptorLengthError(
            f"Descriptors must have the same length ({len(desc1)} vs {len(desc2)})"
        )

    query = np.asarray(desc1, dtype=np.float64).reshape(1, -1)
    known = np.asarray(desc2, dtype=np.float64).reshape(1, -1)
    # Paired form works on X - Y directly, so identical vectors give exactly 0
    return float(paired_euclidean_distances(query, known)[0])


def distance_to_confidence(distance: float) -> float:
    """Map a distance to a [0, 1] confidence; 1.0 at distance 0."""
    return _clamp(math.exp(-2.0 * distance), 0.0, 1.0)


@dataclass(frozen=True)
class MatcherConfig:
    """
    Recognition thresholds.

    ``match_threshold`` is carried for callers that display or persist it;
    the match decision does not read it.
    """

    max_distance: float = 0.6
    min_confidence: float = 0.5
    match_threshold: float = 0.6

    def __post_init__(self):
        object.__setattr__(self, 'max_distance', _clamp(self.max_distance, 0.0, 2.0))
        object.__setattr__(self, 'min_confidence', _clamp(self.min_confidence, 0.0, 1.0))
        object.__setattr__(self, 'match_threshold', _clamp(self.match_threshold, 0.0, 1.0))

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'MatcherConfig':
        """Build from the ``recognition`` section of the configuration."""
        recognition_config = config.get('recognition', {}) or {}
        defaults = cls()
        return cls(
            max_distance=recognition_config.get('max_distance', defaults.max_distance),
            min_confidence=recognition_config.get('min_confidence', defaults.min_confidence),
            match_threshold=recognition_config.get('match_threshold', defaults.match_threshold)
        )


@dataclass
class MatchResult:
    """Best candidate for a query embedding."""

    person_name: str
    confidence: float
    distance: float
    descriptor_id: str


class Matcher:
    """Linear-scan matcher over a DescriptorStore."""

    def __init__(self, store: DescriptorStore, config: Optional[MatcherConfig] = None):
        """
        Initialize matcher.

        Args:
            store: Store to search
            config: Recognition thresholds (defaults when omitted)
        """
        self.store = store
        self.config = config if config is not None else MatcherConfig()

        logger.info(
            f"Matcher initialized (max_distance={self.config.max_distance}, "
            f"min_confidence={self.config.min_confidence})"
        )

    def update_thresholds(self, max_distance: Optional[float] = None,
                          min_confidence: Optional[float] = None,
                          match_threshold: Optional[float] = None) -> MatcherConfig:
        """
        Replace the thresholds that were given, clamped to their ranges.

        Returns:
            The configuration now in effect
        """
        current = self.config
        self.config = MatcherConfig(
            max_distance=current.max_distance if max_distance is None else max_distance,
            min_confidence=current.min_confidence if min_confidence is None else min_confidence,
            match_threshold=current.match_threshold if match_threshold is None else match_threshold
        )
        logger.info(f"Recognition thresholds updated: {self.get_configuration()}")
        return self.config

    def get_configuration(self) -> Dict[str, float]:
        return asdict(self.config)

    def find_best_match(self, query_embedding: np.ndarray) -> Optional[MatchResult]:
        """
        Find the closest stored embedding within ``max_distance``.

        Identities are scanned in insertion order and each identity's
        embeddings in capture order; on equal distances the first candidate
        wins.

        Args:
            query_embedding: Embedding to identify

        Returns:
            Best match or None if nothing lies within ``max_distance``

        Raises:
            DescriptorLengthError: if a stored embedding has a different length
        """
        max_distance = self.config.max_distance
        best_match = None
        best_distance = math.inf

        for identity in self.store.list_all():
            for i, known_embedding in enumerate(list(identity.embeddings)):
                distance = euclidean_distance(query_embedding, known_embedding)

                if distance < best_distance and distance <= max_distance:
                    best_distance = distance
                    best_match = MatchResult(
                        person_name=identity.name,
                        confidence=distance_to_confidence(distance),
                        distance=distance,
                        descriptor_id=f"{identity.id}_{i}"
                    )

        return best_match

    def recognize(self, query_embedding: Optional[np.ndarray]) -> Dict[str, Any]:
        """
        Decide whether a query embedding belongs to a known identity.

        Args:
            query_embedding: Embedding to identify, or None if extraction failed

        Returns:
            Dictionary with ``is_match``, ``match``, ``confidence`` and
            ``processing_time`` (seconds)
        """
        start_time = time.perf_counter()

        if query_embedding is None or len(query_embedding) == 0:
            return {
                'is_match': False,
                'match': None,
                'confidence': 0.0,
                'processing_time': time.perf_counter() - start_time
            }

        match = self.find_best_match(query_embedding)
        processing_time = time.perf_counter() - start_time

        if (match is not None
                and match.confidence >= self.config.min_confidence
                and match.distance <= self.config.max_distance):
            logger.debug(f"Recognized {match.person_name} (distance={match.distance:.4f})")
            return {
                'is_match': True,
                'match': match,
                'confidence': match.confidence,
                'processing_time': processing_time
            }

        return {
            'is_match': False,
            'match': None,
            'confidence': match.confidence if match is not None else 0.0,
            'processing_time': processing_time
        }
