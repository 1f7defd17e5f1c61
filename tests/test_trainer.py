"""
Unit tests for TrainingController module.
"""

import unittest
from unittest import mock
import numpy as np
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from facebank.persistence import MemoryStorage, PersistenceGateway
from facebank.trainer import TrainingController
from facebank.vector_store import DescriptorStore


class TestTrainingController(unittest.TestCase):
    """Test cases for TrainingController class."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = DescriptorStore()
        self.storage = MemoryStorage()
        self.persistence = PersistenceGateway(self.store, self.storage)
        self.trainer = TrainingController(self.store, {}, persistence=self.persistence)
        self.rng = np.random.default_rng(11)

    def _embeddings(self, count):
        return [self.rng.random(128).astype(np.float32) for _ in range(count)]

    def test_train_identity(self):
        result = self.trainer.train_identity("John Doe", self._embeddings(3))

        self.assertTrue(result['success'])
        self.assertEqual(result['samples_added'], 3)
        self.assertEqual(result['total_samples'], 3)
        self.assertIn('Successfully trained John Doe', result['message'])

    def test_train_identity_persists(self):
        self.trainer.train_identity("John Doe", self._embeddings(2))
        self.assertIsNotNone(self.storage.get(self.persistence.key))

    def test_empty_samples_fail_without_mutation(self):
        result = self.trainer.train_identity("John Doe", [])

        self.assertFalse(result['success'])
        self.assertEqual(result['samples_added'], 0)
        self.assertEqual(result['total_samples'], 0)
        self.assertEqual(result['message'], 'No face detections provided for training')
        self.assertEqual(self.store.get_statistics()['total_faces'], 0)
        self.assertIsNone(self.storage.get(self.persistence.key))

    def test_failed_samples_are_skipped(self):
        samples = self._embeddings(2)
        result = self.trainer.train_identity("John Doe", [None, samples[0], None, samples[1]])

        self.assertTrue(result['success'])
        self.assertEqual(result['samples_added'], 2)
        self.assertEqual(result['total_samples'], 2)
        self.assertEqual(
            result['message'],
            'Added 2 samples for John Doe. Need 1 more for optimal recognition'
        )

    def test_all_samples_failing(self):
        result = self.trainer.train_identity("John Doe", [None, None, None])

        self.assertFalse(result['success'])
        self.assertEqual(result['samples_added'], 0)
        self.assertEqual(result['total_samples'], 0)

    def test_progress_callback(self):
        progress = mock.Mock()
        self.trainer.train_identity("John Doe", self._embeddings(3), progress_callback=progress)

        self.assertEqual(progress.call_args_list,
                         [mock.call(1, 3), mock.call(2, 3), mock.call(3, 3)])

    def test_training_stops_at_cap(self):
        result = self.trainer.train_identity("John Doe", self._embeddings(15))

        self.assertEqual(result['samples_added'], 10)
        self.assertEqual(result['total_samples'], 10)
        self.assertEqual(self.store.get("john_doe").num_embeddings, 10)

    def test_cap_counts_existing_samples(self):
        self.trainer.train_identity("John Doe", self._embeddings(8))
        result = self.trainer.train_identity("John Doe", self._embeddings(5))

        self.assertEqual(result['samples_added'], 2)
        self.assertEqual(result['total_samples'], 10)

    def test_extract_not_called_past_cap(self):
        extract = mock.Mock(side_effect=lambda sample: sample)
        self.trainer.train_identity("John Doe", self._embeddings(15), extract=extract)

        self.assertEqual(extract.call_count, 10)

    def test_extract_errors_count_as_failed_samples(self):
        embeddings = self._embeddings(2)
        extract = mock.Mock(side_effect=[RuntimeError("model crashed"), embeddings[0], embeddings[1]])

        result = self.trainer.train_identity("John Doe", ['s1', 's2', 's3'], extract=extract)

        self.assertEqual(result['samples_added'], 2)

    def test_identity_removed_mid_training_is_recreated(self):
        embeddings = self._embeddings(3)
        store = self.store

        def extract(sample):
            if sample is embeddings[1]:
                store.remove_known_face("John Doe")
            return sample

        result = self.trainer.train_identity("John Doe", embeddings, extract=extract)

        self.assertEqual(result['samples_added'], 3)
        self.assertEqual(result['total_samples'], 2)
        self.assertEqual(store.get_statistics()['total_descriptors'], 2)

    def test_add_single_sample_ignores_cap(self):
        self.trainer.train_identity("John Doe", self._embeddings(10))

        self.assertTrue(self.trainer.add_single_sample("John Doe", self._embeddings(1)[0]))
        self.assertEqual(self.store.get("john_doe").num_embeddings, 11)

    def test_add_single_sample_failure(self):
        self.assertFalse(self.trainer.add_single_sample("John Doe", None))
        self.assertIsNone(self.storage.get(self.persistence.key))

    def test_validate_well_trained(self):
        self.trainer.train_identity("John Doe", self._embeddings(5))

        validation = self.trainer.validate_training("John Doe")

        self.assertTrue(validation['is_valid'])
        self.assertEqual(validation['sample_count'], 5)
        self.assertEqual(validation['recommendations'], [])

    def test_validate_exactly_minimum(self):
        self.trainer.train_identity("John Doe", self._embeddings(3))

        validation = self.trainer.validate_training("John Doe")

        self.assertTrue(validation['is_valid'])
        self.assertFalse(any(r.startswith('Add ') for r in validation['recommendations']))
        self.assertIn('Consider adding more samples for better accuracy',
                      validation['recommendations'])

    def test_validate_under_trained(self):
        self.trainer.train_identity("John Doe", self._embeddings(2))

        validation = self.trainer.validate_training("John Doe")

        self.assertFalse(validation['is_valid'])
        self.assertEqual(validation['sample_count'], 2)
        self.assertIn('Add 1 more training samples', validation['recommendations'])

    def test_validate_at_maximum(self):
        self.trainer.train_identity("John Doe", self._embeddings(10))

        validation = self.trainer.validate_training("John Doe")

        self.assertEqual(validation['recommendations'], ['Maximum training samples reached'])

    def test_validate_missing_identity(self):
        validation = self.trainer.validate_training("Nobody")

        self.assertFalse(validation['is_valid'])
        self.assertEqual(validation['sample_count'], 0)
        self.assertEqual(validation['recommendations'], ['Face not found in database'])

    def test_limits_from_config(self):
        trainer = TrainingController(self.store, {'training': {'max_samples_per_identity': 4}})
        result = trainer.train_identity("Jane", self._embeddings(6))

        self.assertEqual(result['total_samples'], 4)


if __name__ == '__main__':
    unittest.main()
