"""
Descriptor Store Module

Authoritative in-memory store of known identities and their face embeddings.
Every other component reads from or writes to this store; nothing else keeps
a mutable copy of identity state.
"""

import copy
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Any

import numpy as np

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')
_INVALID_ID_CHARS = re.compile(r'[^a-z0-9_]')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_face_id(name: str) -> str:
    """
    Derive the canonical identity key from a display name.

    Lowercases, turns whitespace runs into underscores and strips anything
    outside ``[a-z0-9_]``. Names that normalise to the same key refer to the
    same identity.
    """
    face_id = _WHITESPACE.sub('_', name.lower())
    return _INVALID_ID_CHARS.sub('', face_id)


@dataclass
class Identity:
    """A named person with the embeddings captured for them, in capture order."""

    id: str
    name: str
    embeddings: List[np.ndarray] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    last_seen: Optional[datetime] = None

    @property
    def num_embeddings(self) -> int:
        return len(self.embeddings)


class DescriptorStore:
    """In-memory map of identity id -> Identity with running counters."""

    def __init__(self):
        self.identities: Dict[str, Identity] = {}
        self.total_embeddings = 0
        self.last_updated = utcnow()
        self._lock = threading.RLock()

        logger.info("Descriptor store initialized")

    def _touch(self):
        """Bump ``last_updated`` without ever moving it backwards."""
        now = utcnow()
        if now > self.last_updated:
            self.last_updated = now

    def add(self, identity_id: str, embedding: np.ndarray,
            name: Optional[str] = None) -> None:
        """
        Append an embedding to an identity, creating the identity if needed.

        Args:
            identity_id: Canonical identity key
            embedding: Face embedding vector
            name: Display name used when the identity is created
        """
        vector = np.array(embedding, dtype=np.float32).ravel()

        with self._lock:
            now = utcnow()
            identity = self.identities.get(identity_id)
            if identity is None:
                identity = Identity(
                    id=identity_id,
                    name=name if name is not None else identity_id,
                    created_at=now
                )
                self.identities[identity_id] = identity
                logger.info(f"Created identity '{identity_id}'")

            identity.embeddings.append(vector)
            identity.last_seen = now
            self.total_embeddings += 1
            self._touch()

        logger.debug(f"Added embedding {identity.num_embeddings} for '{identity_id}'")

    def add_known_face(self, name: str, embedding: Optional[np.ndarray]) -> bool:
        """
        Add one embedding for a display name.

        Args:
            name: Display name of the person
            embedding: Embedding vector, or None when extraction failed

        Returns:
            True if the embedding was stored
        """
        if embedding is None or len(embedding) == 0:
            logger.debug(f"No usable embedding for '{name}'")
            return False

        self.add(generate_face_id(name), embedding, name=name)
        return True

    def remove(self, identity_id: str) -> bool:
        """
        Remove an identity and all of its embeddings.

        Returns:
            True if the identity existed
        """
        with self._lock:
            identity = self.identities.pop(identity_id, None)
            if identity is None:
                return False

            self.total_embeddings -= identity.num_embeddings
            self._touch()

        logger.info(f"Removed identity '{identity_id}'")
        return True

    def remove_known_face(self, name: str) -> bool:
        return self.remove(generate_face_id(name))

    def get(self, identity_id: str) -> Optional[Identity]:
        with self._lock:
            return self.identities.get(identity_id)

    def list_all(self) -> List[Identity]:
        with self._lock:
            return list(self.identities.values())

    def clear(self) -> None:
        """Remove every identity and reset the counters."""
        with self._lock:
            self.identities.clear()
            self.total_embeddings = 0
            self._touch()

        logger.info("Descriptor store cleared")

    def restore(self, identity: Identity) -> None:
        """
        Insert a fully formed identity, e.g. one rebuilt from an export.

        An existing identity with the same id is replaced.
        """
        with self._lock:
            previous = self.identities.get(identity.id)
            if previous is not None:
                self.total_embeddings -= previous.num_embeddings

            self.identities[identity.id] = identity
            self.total_embeddings += identity.num_embeddings
            self._touch()

    def snapshot(self) -> List[Identity]:
        """Deep copy of every identity, safe to hand to readers."""
        with self._lock:
            return copy.deepcopy(list(self.identities.values()))

    def snapshot_state(self) -> Tuple[List[Identity], Dict[str, Any]]:
        """Snapshot and statistics taken under one lock acquisition."""
        with self._lock:
            return self.snapshot(), self.get_statistics()

    def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics."""
        with self._lock:
            return {
                'total_faces': len(self.identities),
                'total_descriptors': self.total_embeddings,
                'last_updated': self.last_updated
            }
