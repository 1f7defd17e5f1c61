"""
Training Module

Adds embedding samples for an identity while enforcing the per-identity
sample cap, and reports how well trained an identity is.
"""

import logging
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from .vector_store import DescriptorStore, generate_face_id

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class TrainingController:
    """Training policy on top of a DescriptorStore."""

    def __init__(self, store: DescriptorStore, config: Dict[str, Any],
                 persistence=None):
        """
        Initialize training controller.

        Args:
            store: Store receiving the samples
            config: Configuration dictionary with training settings
            persistence: Optional PersistenceGateway saved after training
        """
        self.store = store
        self.persistence = persistence
        self.training_config = config.get('training', {}) or {}

        self.max_samples_per_identity = self.training_config.get('max_samples_per_identity', 10)
        self.min_training_samples = self.training_config.get('min_training_samples', 3)
        self.recommended_samples = self.training_config.get('recommended_samples', 5)

    def _sample_count(self, name: str) -> int:
        identity = self.store.get(generate_face_id(name))
        return identity.num_embeddings if identity is not None else 0

    def _save(self):
        if self.persistence is not None:
            self.persistence.save()

    def train_identity(self, name: str, samples: Sequence[Any],
                       progress_callback: Optional[ProgressCallback] = None,
                       extract: Optional[Callable[[Any], Optional[np.ndarray]]] = None
                       ) -> Dict[str, Any]:
        """
        Train an identity from a sequence of samples.

        Samples are embeddings, or arbitrary sample objects when ``extract``
        turns each one into an embedding. A sample that yields no embedding is
        skipped. Training stops as soon as the identity holds
        ``max_samples_per_identity`` embeddings.

        Args:
            name: Display name of the person
            samples: Ordered training samples
            progress_callback: Called with (index, total) before each sample
            extract: Optional sample -> embedding function

        Returns:
            Training outcome with success flag, counts and message
        """
        total = len(samples)
        if total == 0:
            return {
                'success': False,
                'samples_added': 0,
                'total_samples': 0,
                'message': 'No face detections provided for training'
            }

        samples_added = 0

        for i, sample in enumerate(samples):
            if progress_callback is not None:
                progress_callback(i + 1, total)

            embedding = sample
            if extract is not None:
                try:
                    embedding = extract(sample)
                except Exception as e:
                    logger.error(f"Descriptor extraction failed for sample {i + 1}: {e}")
                    embedding = None

            if self.store.add_known_face(name, embedding):
                samples_added += 1

            if self._sample_count(name) >= self.max_samples_per_identity:
                logger.info(f"'{name}' reached {self.max_samples_per_identity} samples, stopping")
                break

        self._save()

        total_samples = self._sample_count(name)
        if total_samples >= self.min_training_samples:
            message = f"Successfully trained {name} with {total_samples} samples"
        else:
            message = (
                f"Added {samples_added} samples for {name}. "
                f"Need {self.min_training_samples - total_samples} more for optimal recognition"
            )

        logger.info(message)
        return {
            'success': samples_added > 0,
            'samples_added': samples_added,
            'total_samples': total_samples,
            'message': message
        }

    def add_single_sample(self, name: str, embedding: Optional[np.ndarray]) -> bool:
        """
        Add one training sample without the cap check.

        Returns:
            True if the sample was stored
        """
        success = self.store.add_known_face(name, embedding)
        if success:
            self._save()
        return success

    def validate_training(self, name: str) -> Dict[str, Any]:
        """
        Assess whether an identity has enough samples.

        Returns:
            Dictionary with ``is_valid``, ``sample_count`` and ``recommendations``
        """
        identity = self.store.get(generate_face_id(name))
        if identity is None:
            return {
                'is_valid': False,
                'sample_count': 0,
                'recommendations': ['Face not found in database']
            }

        sample_count = identity.num_embeddings
        recommendations = []

        if sample_count < self.min_training_samples:
            recommendations.append(
                f"Add {self.min_training_samples - sample_count} more training samples"
            )

        if sample_count < self.recommended_samples:
            recommendations.append('Consider adding more samples for better accuracy')

        if sample_count == self.max_samples_per_identity:
            recommendations.append('Maximum training samples reached')

        return {
            'is_valid': sample_count >= self.min_training_samples,
            'sample_count': sample_count,
            'recommendations': recommendations
        }
