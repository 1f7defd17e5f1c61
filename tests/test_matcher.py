"""
Test cases for Face Matching Module
"""

import math

import pytest
import numpy as np
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from facebank.matcher import (
    DescriptorLengthError,
    Matcher,
    MatcherConfig,
    distance_to_confidence,
    euclidean_distance,
)
from facebank.vector_store import DescriptorStore


class TestDistance:
    """Test cases for distance and confidence functions."""

    @pytest.fixture
    def vectors(self):
        rng = np.random.default_rng(3)
        return [rng.standard_normal(128).astype(np.float32) for _ in range(5)]

    def test_distance_to_self_is_zero(self, vectors):
        for v in vectors:
            assert euclidean_distance(v, v) == 0.0
        assert distance_to_confidence(0.0) == 1.0

    def test_distance_is_symmetric(self, vectors):
        for a in vectors:
            for b in vectors:
                assert euclidean_distance(a, b) == euclidean_distance(b, a)

    def test_known_distance(self):
        assert euclidean_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == pytest.approx(5.0)

    def test_matches_numpy_norm(self, vectors):
        a, b = vectors[0], vectors[1]
        expected = np.linalg.norm(a.astype(np.float64) - b.astype(np.float64))
        assert euclidean_distance(a, b) == pytest.approx(expected, rel=1e-12)

    def test_length_mismatch_raises(self):
        with pytest.raises(DescriptorLengthError):
            euclidean_distance(np.zeros(128), np.zeros(64))

    def test_confidence_strictly_decreasing(self):
        distances = np.linspace(0.0, 2.0, 41)
        confidences = [distance_to_confidence(d) for d in distances]
        assert all(a > b for a, b in zip(confidences, confidences[1:]))

    def test_confidence_reference_values(self):
        assert distance_to_confidence(0.6) == pytest.approx(0.301, abs=1e-3)
        assert 0.0 <= distance_to_confidence(100.0) < 1e-6


class TestMatcherConfig:
    """Test cases for threshold configuration."""

    def test_defaults(self):
        config = MatcherConfig()
        assert config.max_distance == 0.6
        assert config.min_confidence == 0.5
        assert config.match_threshold == 0.6

    def test_values_are_clamped(self):
        config = MatcherConfig(max_distance=5.0, min_confidence=-1.0, match_threshold=3.0)
        assert config.max_distance == 2.0
        assert config.min_confidence == 0.0
        assert config.match_threshold == 1.0

    def test_from_dict(self):
        config = MatcherConfig.from_dict({'recognition': {'max_distance': 0.4}})
        assert config.max_distance == 0.4
        assert config.min_confidence == 0.5

    def test_update_thresholds_clamps_and_keeps_others(self):
        matcher = Matcher(DescriptorStore())
        matcher.update_thresholds(max_distance=-0.3)

        assert matcher.get_configuration() == {
            'max_distance': 0.0,
            'min_confidence': 0.5,
            'match_threshold': 0.6
        }


class TestMatcher:
    """Test cases for Matcher class."""

    @pytest.fixture
    def store(self):
        return DescriptorStore()

    @pytest.fixture
    def matcher(self, store):
        return Matcher(store)

    def test_empty_store_has_no_match(self, matcher):
        assert matcher.find_best_match(np.zeros(4, dtype=np.float32)) is None
        result = matcher.recognize(np.zeros(4, dtype=np.float32))
        assert result['is_match'] is False
        assert result['confidence'] == 0.0

    def test_best_match_picks_closest(self, store, matcher):
        store.add("a", np.array([0.0, 0.0, 0.0, 0.0]), name="A")
        store.add("b", np.array([0.1, 0.0, 0.0, 0.0]), name="B")
        store.add("b", np.array([0.05, 0.0, 0.0, 0.0]), name="B")

        match = matcher.find_best_match(np.array([0.06, 0.0, 0.0, 0.0]))

        assert match.person_name == "B"
        assert match.descriptor_id == "b_1"
        assert match.distance == pytest.approx(0.01, abs=1e-6)
        assert match.confidence == pytest.approx(math.exp(-2 * match.distance))

    def test_ties_keep_first_candidate(self, store, matcher):
        store.add("first", np.array([1.0, 0.0]), name="First")
        store.add("second", np.array([-1.0, 0.0]), name="Second")

        match = matcher.find_best_match(np.array([0.0, 0.0]))

        # Both at distance 1.0, above the default max_distance
        assert match is None

        matcher.update_thresholds(max_distance=1.5)
        match = matcher.find_best_match(np.array([0.0, 0.0]))
        assert match.person_name == "First"
        assert match.descriptor_id == "first_0"

    def test_candidates_beyond_max_distance_are_ignored(self, store, matcher):
        store.add("a", np.array([0.9, 0.9, 0.9, 0.9]), name="A")
        assert matcher.find_best_match(np.array([0.1, 0.2, 0.3, 0.4])) is None

    def test_length_mismatch_propagates(self, store, matcher):
        store.add("a", np.zeros(128), name="A")
        with pytest.raises(DescriptorLengthError):
            matcher.find_best_match(np.zeros(64))

    def test_recognize_match(self, store, matcher):
        store.add("a", np.array([0.1, 0.2, 0.3, 0.4]), name="A")

        result = matcher.recognize(np.array([0.1, 0.2, 0.3, 0.41]))

        assert result['is_match'] is True
        assert result['match'].person_name == "A"
        assert result['confidence'] > 0.5
        assert result['processing_time'] >= 0.0

    def test_recognize_low_confidence_is_unmatched(self, store, matcher):
        # distance 0.5 -> confidence ~0.37, below min_confidence
        store.add("a", np.array([0.0, 0.0]), name="A")

        result = matcher.recognize(np.array([0.5, 0.0]))

        assert result['is_match'] is False
        assert result['match'] is None
        assert result['confidence'] == pytest.approx(math.exp(-1.0), rel=1e-6)

    def test_recognize_without_embedding(self, matcher):
        result = matcher.recognize(None)
        assert result['is_match'] is False
        assert result['confidence'] == 0.0

    def test_match_threshold_does_not_gate_matches(self, store, matcher):
        store.add("a", np.array([0.0, 0.0]), name="A")
        matcher.update_thresholds(match_threshold=1.0)

        assert matcher.recognize(np.array([0.01, 0.0]))['is_match'] is True
