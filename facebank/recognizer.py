"""
Face Recognition Module

Consumer-facing surface that wires the descriptor store, matcher, trainer,
persistence gateway and read-only views together. The store is loaded from
durable storage on construction and saved after every mutation.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .extractor import BoundingBox, DescriptorExtractor
from .matcher import Matcher, MatcherConfig
from .persistence import DEFAULT_STORAGE_KEY, PersistenceGateway, create_storage
from .trainer import ProgressCallback, TrainingController
from .vector_store import DescriptorStore
from .views import ViewCache

logger = logging.getLogger(__name__)


class FaceRegistry:
    """Main face recognition system combining all components."""

    def __init__(self, config: Dict[str, Any], storage=None,
                 extractor: Optional[DescriptorExtractor] = None):
        """
        Initialize face registry.

        Args:
            config: Configuration dictionary
            storage: Key/value storage (built from config when omitted)
            extractor: Optional descriptor extractor for frame-based calls
        """
        self.config = config
        self.storage_config = config.get('storage', {}) or {}

        self.store = DescriptorStore()
        self.matcher = Matcher(self.store, MatcherConfig.from_dict(config))
        self.persistence = PersistenceGateway(
            self.store,
            storage if storage is not None else create_storage(config),
            key=self.storage_config.get('key', DEFAULT_STORAGE_KEY)
        )
        self.trainer = TrainingController(self.store, config, persistence=self.persistence)
        self.views = ViewCache(self.store, self.trainer.min_training_samples)
        self.extractor = extractor

        self.persistence.load()

        logger.info("Face registry initialized successfully")

    def _require_extractor(self) -> DescriptorExtractor:
        if self.extractor is None:
            raise RuntimeError("No descriptor extractor configured")
        return self.extractor

    def recognize(self, embedding: Optional[np.ndarray]) -> Dict[str, Any]:
        """Identify the person an embedding belongs to."""
        return self.matcher.recognize(embedding)

    def recognize_detection(self, frame: Any, bbox: BoundingBox) -> Dict[str, Any]:
        """Extract the descriptor for a detected face and identify it."""
        descriptor = self._require_extractor().extract(frame, bbox)
        return self.matcher.recognize(descriptor)

    def train_identity(self, name: str, embeddings: Sequence[Optional[np.ndarray]],
                       progress_callback: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """Train a person from already extracted embeddings."""
        return self.trainer.train_identity(name, embeddings, progress_callback)

    def train_from_detections(self, name: str, frame: Any, bboxes: Sequence[BoundingBox],
                              progress_callback: Optional[ProgressCallback] = None
                              ) -> Dict[str, Any]:
        """Train a person from face detections in a frame."""
        extractor = self._require_extractor()
        return self.trainer.train_identity(
            name,
            bboxes,
            progress_callback,
            extract=lambda bbox: extractor.extract(frame, bbox)
        )

    def add_training_sample(self, name: str, embedding: Optional[np.ndarray]) -> bool:
        return self.trainer.add_single_sample(name, embedding)

    def validate_training(self, name: str) -> Dict[str, Any]:
        return self.trainer.validate_training(name)

    def remove_identity(self, name: str) -> bool:
        """
        Remove a person from the database.

        Returns:
            True if the person existed
        """
        success = self.store.remove_known_face(name)
        if success:
            self.persistence.save()
        return success

    def get_known_faces(self) -> List[Dict[str, Any]]:
        return self.views.get_known_faces()

    def get_face(self, name: str) -> Optional[Dict[str, Any]]:
        return self.views.get_face(name)

    def get_statistics(self) -> Dict[str, Any]:
        """Get database statistics including the persisted size."""
        return self.views.get_statistics(self.persistence.get_storage_size())

    def clear_database(self) -> None:
        self.store.clear()
        self.persistence.save()

    def export_database(self) -> str:
        return self.persistence.export_database()

    def import_database(self, json_data: str) -> Dict[str, Any]:
        return self.persistence.import_database(json_data)

    def update_thresholds(self, max_distance: Optional[float] = None,
                          min_confidence: Optional[float] = None,
                          match_threshold: Optional[float] = None) -> Dict[str, float]:
        self.matcher.update_thresholds(
            max_distance=max_distance,
            min_confidence=min_confidence,
            match_threshold=match_threshold
        )
        return self.matcher.get_configuration()

    def get_configuration(self) -> Dict[str, float]:
        return self.matcher.get_configuration()
