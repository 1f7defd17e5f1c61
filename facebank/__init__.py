"""
Facebank

Identifies people from face embeddings by nearest-neighbour search over a
bounded set of captured embeddings per identity, and manages training,
persistence and read-only views of those embeddings.
"""

__version__ = "1.0.0"
__author__ = "Face Recognition System Team"

from .vector_store import DescriptorStore, Identity, generate_face_id
from .matcher import Matcher, MatcherConfig, MatchResult, DescriptorLengthError
from .trainer import TrainingController
from .persistence import PersistenceGateway, MemoryStorage, FileStorage
from .views import ViewCache
from .extractor import DescriptorExtractor
from .recognizer import FaceRegistry

__all__ = [
    "DescriptorStore",
    "Identity",
    "generate_face_id",
    "Matcher",
    "MatcherConfig",
    "MatchResult",
    "DescriptorLengthError",
    "TrainingController",
    "PersistenceGateway",
    "MemoryStorage",
    "FileStorage",
    "ViewCache",
    "DescriptorExtractor",
    "FaceRegistry"
]
