"""
Read-only views of the descriptor store.

Every read takes a fresh snapshot of the store and derives the training
status fields from it; nothing here is cached between calls or written back.
"""

from typing import Any, Dict, List, Optional

from .vector_store import DescriptorStore, Identity, generate_face_id


def identity_view(identity: Identity, min_samples: int) -> Dict[str, Any]:
    """Describe one identity together with its training status."""
    count = identity.num_embeddings
    return {
        'id': identity.id,
        'name': identity.name,
        'descriptors': identity.embeddings,
        'added_at': identity.created_at,
        'last_seen': identity.last_seen,
        'num_descriptors': count,
        'is_well_trained': count >= min_samples,
        'training_progress': min(count / min_samples, 1.0) if min_samples > 0 else 1.0
    }


def database_statistics(identities: List[Identity], total_descriptors: int,
                        last_updated, min_samples: int,
                        storage_size: int = 0) -> Dict[str, Any]:
    """Aggregate statistics over a snapshot of identities."""
    well_trained = sum(1 for identity in identities if identity.num_embeddings >= min_samples)

    if identities:
        average = sum(identity.num_embeddings for identity in identities) / len(identities)
    else:
        average = 0.0

    return {
        'total_faces': len(identities),
        'total_descriptors': total_descriptors,
        'well_trained_faces': well_trained,
        'average_descriptors_per_face': round(average, 2),
        'last_updated': last_updated,
        'storage_size': storage_size
    }


class ViewCache:
    """Consumer-facing reads over a DescriptorStore."""

    def __init__(self, store: DescriptorStore, min_training_samples: int = 3):
        self.store = store
        self.min_training_samples = min_training_samples

    def get_known_faces(self) -> List[Dict[str, Any]]:
        return [
            identity_view(identity, self.min_training_samples)
            for identity in self.store.snapshot()
        ]

    def get_face(self, name: str) -> Optional[Dict[str, Any]]:
        face_id = generate_face_id(name)
        for identity in self.store.snapshot():
            if identity.id == face_id:
                return identity_view(identity, self.min_training_samples)
        return None

    def get_statistics(self, storage_size: int = 0) -> Dict[str, Any]:
        identities, stats = self.store.snapshot_state()
        return database_statistics(
            identities,
            stats['total_descriptors'],
            stats['last_updated'],
            self.min_training_samples,
            storage_size=storage_size
        )
