"""
Persistence Module

Serializes the descriptor store to a JSON document, restores it from one, and
keeps the document in a simple key/value durable storage.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import numpy as np
from sklearn.utils import check_array

from .vector_store import DescriptorStore, Identity, generate_face_id, utcnow

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = 'facial_recognition_database'

_FRACTION = re.compile(r'\.(\d+)')


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")

    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    normalized = _FRACTION.sub(
        lambda m: '.' + m.group(1)[:6].ljust(6, '0'),
        value.replace('Z', '+00:00'),
        count=1
    )
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class MemoryStorage:
    """Key/value storage held in a dictionary."""

    def __init__(self):
        self.items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value


class FileStorage:
    """Key/value storage keeping one UTF-8 file per key in a directory."""

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None

        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


def create_storage(config: Dict[str, Any]):
    """Build the storage backend named in the ``storage`` config section."""
    storage_config = config.get('storage', {}) or {}
    backend = storage_config.get('backend', 'file')

    if backend == 'memory':
        return MemoryStorage()
    if backend == 'file':
        return FileStorage(storage_config.get('path', 'data'))

    raise ValueError(f"Unsupported storage backend: {backend}")


class PersistenceGateway:
    """Moves DescriptorStore state to and from durable storage."""

    def __init__(self, store: DescriptorStore, storage, key: str = DEFAULT_STORAGE_KEY):
        """
        Initialize persistence gateway.

        Args:
            store: Authoritative descriptor store
            storage: Object with ``get(key)`` and ``set(key, value)``
            key: Storage key holding the serialized store
        """
        self.store = store
        self.storage = storage
        self.key = key

    def export_database(self) -> str:
        """Serialize the current store to a JSON document."""
        identities, stats = self.store.snapshot_state()

        faces = []
        for identity in identities:
            face = {
                'id': identity.id,
                'name': identity.name,
                'descriptors': [np.asarray(desc).tolist() for desc in identity.embeddings],
                'addedAt': format_timestamp(identity.created_at)
            }
            if identity.last_seen is not None:
                face['lastSeen'] = format_timestamp(identity.last_seen)
            faces.append(face)

        export_data = {
            'faces': faces,
            'totalDescriptors': stats['total_descriptors'],
            'lastUpdated': format_timestamp(stats['last_updated']),
            'exportedAt': format_timestamp(utcnow())
        }

        return json.dumps(export_data, indent=2)

    def _identity_from_entry(self, entry: Dict[str, Any]) -> Identity:
        name = entry['name']
        if not isinstance(name, str):
            raise ValueError(f"Invalid name: {name!r}")

        face_id = entry.get('id')
        if not isinstance(face_id, str) or not face_id:
            face_id = generate_face_id(name)

        descriptors = entry['descriptors']
        if not isinstance(descriptors, list):
            raise ValueError("descriptors must be a list")

        embeddings = []
        if descriptors:
            matrix = check_array(descriptors, dtype=np.float32)
            embeddings = [row.copy() for row in matrix]

        added_at = entry.get('addedAt')
        last_seen = entry.get('lastSeen')
        return Identity(
            id=face_id,
            name=name,
            embeddings=embeddings,
            created_at=parse_timestamp(added_at) if added_at else utcnow(),
            last_seen=parse_timestamp(last_seen) if last_seen else None
        )

    def import_database(self, json_data: str) -> Dict[str, Any]:
        """
        Replace the store contents with a previously exported document.

        Malformed entries are skipped; a malformed document leaves the store
        untouched.

        Returns:
            Import outcome with success flag, counts and message
        """
        try:
            import_data = json.loads(json_data)
        except (TypeError, ValueError) as e:
            return {
                'success': False,
                'faces_imported': 0,
                'descriptors_imported': 0,
                'message': f"Import failed: {e}"
            }

        if not isinstance(import_data, dict) or not isinstance(import_data.get('faces'), list):
            return {
                'success': False,
                'faces_imported': 0,
                'descriptors_imported': 0,
                'message': 'Invalid database format'
            }

        self.store.clear()

        faces_imported = 0
        descriptors_imported = 0

        for entry in import_data['faces']:
            try:
                identity = self._identity_from_entry(entry)
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                label = entry.get('name') if isinstance(entry, dict) else entry
                logger.warning(f"Failed to import face {label}: {e}")
                continue

            self.store.restore(identity)
            faces_imported += 1
            descriptors_imported += identity.num_embeddings

        self.save()

        message = f"Successfully imported {faces_imported} faces with {descriptors_imported} descriptors"
        logger.info(message)
        return {
            'success': True,
            'faces_imported': faces_imported,
            'descriptors_imported': descriptors_imported,
            'message': message
        }

    def save(self) -> bool:
        """
        Write the serialized store to durable storage.

        Returns:
            True if saved successfully
        """
        try:
            self.storage.set(self.key, self.export_database())
            logger.debug(f"Database saved under '{self.key}'")
            return True
        except Exception as e:
            logger.error(f"Failed to save database to storage: {e}")
            return False

    def load(self) -> bool:
        """
        Replace the store contents with the persisted document, if any.

        Returns:
            True if a document was found and imported
        """
        try:
            stored_data = self.storage.get(self.key)
        except Exception as e:
            logger.error(f"Failed to load database from storage: {e}")
            return False

        if not stored_data:
            logger.info("No existing database found, starting fresh")
            return False

        result = self.import_database(stored_data)
        if not result['success']:
            logger.error(f"Stored database could not be loaded: {result['message']}")
            return False

        logger.info(
            f"Loaded {result['descriptors_imported']} descriptors for "
            f"{result['faces_imported']} people"
        )
        return True

    def get_storage_size(self) -> int:
        """Size in bytes of the persisted document, 0 if there is none."""
        try:
            stored_data = self.storage.get(self.key)
            return len(stored_data.encode('utf-8')) if stored_data else 0
        except Exception as e:
            logger.debug(f"Could not measure storage size: {e}")
            return 0
