"""
Main Application Module

Command line interface for managing the face database: training identities
from stored embeddings, recognizing embeddings, and import/export.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import numpy as np

from .config import load_config
from .recognizer import FaceRegistry

logger = logging.getLogger(__name__)


def setup_logging(config: Dict[str, Any]):
    """Configure root logging from the ``logging`` config section."""
    logging_config = config.get('logging', {}) or {}

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if logging_config.get('file'):
        handlers.append(logging.FileHandler(logging_config['file']))

    logging.basicConfig(
        level=getattr(logging, str(logging_config.get('level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def _read_json(path: str) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class FacebankApp:
    """Face database command line application."""

    def __init__(self, config_path: Optional[str] = 'config/config.yaml'):
        """
        Initialize the application.

        Args:
            config_path: Path to configuration file
        """
        self.config = load_config(config_path)
        setup_logging(self.config)
        self.registry = FaceRegistry(self.config)

    def show_statistics(self) -> int:
        stats = self.registry.get_statistics()
        print(f"Faces: {stats['total_faces']} ({stats['well_trained_faces']} well trained)")
        print(f"Descriptors: {stats['total_descriptors']} "
              f"(avg {stats['average_descriptors_per_face']} per face)")
        print(f"Last updated: {stats['last_updated'].isoformat()}")
        print(f"Storage size: {stats['storage_size']} bytes")
        return 0

    def list_faces(self) -> int:
        faces = self.registry.get_known_faces()
        print(f"Enrolled people ({len(faces)}):")
        for face in faces:
            status = "trained" if face['is_well_trained'] else f"{face['training_progress']:.0%}"
            print(f"  {face['id']}: {face['name']} ({face['num_descriptors']} descriptors, {status})")
        return 0

    def train(self, name: str, embeddings_path: str) -> int:
        vectors = [np.asarray(v, dtype=np.float32) for v in _read_json(embeddings_path)]
        result = self.registry.train_identity(
            name,
            vectors,
            progress_callback=lambda i, total: logger.info(f"Training sample {i}/{total}")
        )
        print(result['message'])
        return 0 if result['success'] else 1

    def recognize(self, embedding_path: str) -> int:
        embedding = np.asarray(_read_json(embedding_path), dtype=np.float32)
        result = self.registry.recognize(embedding)
        if result['is_match']:
            match = result['match']
            print(f"Match: {match.person_name} (confidence {match.confidence:.3f}, "
                  f"distance {match.distance:.3f})")
        else:
            print(f"No match (confidence {result['confidence']:.3f})")
        return 0

    def validate(self, name: str) -> int:
        result = self.registry.validate_training(name)
        state = "valid" if result['is_valid'] else "not valid"
        print(f"{name}: {result['sample_count']} samples, {state}")
        for recommendation in result['recommendations']:
            print(f"  - {recommendation}")
        return 0 if result['is_valid'] else 1

    def remove(self, name: str) -> int:
        if self.registry.remove_identity(name):
            print(f"Removed {name}")
            return 0
        print(f"{name} not found")
        return 1

    def export(self, path: str) -> int:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.registry.export_database())
        print(f"Exported database to {path}")
        return 0

    def import_file(self, path: str) -> int:
        with open(path, 'r', encoding='utf-8') as f:
            result = self.registry.import_database(f.read())
        print(result['message'])
        return 0 if result['success'] else 1

    def clear(self) -> int:
        self.registry.clear_database()
        print("Database cleared")
        return 0

    def thresholds(self, args: argparse.Namespace) -> int:
        if any(v is not None for v in (args.max_distance, args.min_confidence,
                                       args.match_threshold)):
            configuration = self.registry.update_thresholds(
                max_distance=args.max_distance,
                min_confidence=args.min_confidence,
                match_threshold=args.match_threshold
            )
        else:
            configuration = self.registry.get_configuration()

        for key, value in configuration.items():
            print(f"{key}: {value}")
        return 0

    def run(self, args: argparse.Namespace) -> int:
        command = args.command
        if command == 'stats':
            return self.show_statistics()
        if command == 'list':
            return self.list_faces()
        if command == 'train':
            return self.train(args.name, args.file)
        if command == 'recognize':
            return self.recognize(args.file)
        if command == 'validate':
            return self.validate(args.name)
        if command == 'remove':
            return self.remove(args.name)
        if command == 'export':
            return self.export(args.file)
        if command == 'import':
            return self.import_file(args.file)
        if command == 'clear':
            return self.clear()
        if command == 'thresholds':
            return self.thresholds(args)
        raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Face embedding database')
    parser.add_argument('--config', '-c', default='config/config.yaml',
                        help='Configuration file path')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('stats', help='Show database statistics')
    subparsers.add_parser('list', help='List enrolled people')

    train_parser = subparsers.add_parser('train', help='Train a person from a JSON list of embeddings')
    train_parser.add_argument('name')
    train_parser.add_argument('file')

    recognize_parser = subparsers.add_parser('recognize', help='Recognize a JSON embedding')
    recognize_parser.add_argument('file')

    for command, help_text in (('validate', 'Check training quality'),
                               ('remove', 'Remove a person')):
        command_parser = subparsers.add_parser(command, help=help_text)
        command_parser.add_argument('name')

    for command, help_text in (('export', 'Export the database to a file'),
                               ('import', 'Import the database from a file')):
        command_parser = subparsers.add_parser(command, help=help_text)
        command_parser.add_argument('file')

    subparsers.add_parser('clear', help='Remove every person')

    thresholds_parser = subparsers.add_parser('thresholds', help='Show or update thresholds')
    thresholds_parser.add_argument('--max-distance', type=float)
    thresholds_parser.add_argument('--min-confidence', type=float)
    thresholds_parser.add_argument('--match-threshold', type=float)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        app = FacebankApp(args.config)
        return app.run(args)
    except Exception as e:
        logger.error(f"Application error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
