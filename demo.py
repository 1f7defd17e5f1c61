#!/usr/bin/env python3
"""
Facebank Demo

Trains a person from synthetic embeddings, recognizes a near-duplicate and a
far vector, and round-trips the database through export/import.
"""

import os
import sys

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def create_demo_config():
    """Create a minimal configuration for demo."""
    return {
        'recognition': {
            'max_distance': 0.6,
            'min_confidence': 0.5
        },
        'training': {
            'max_samples_per_identity': 10,
            'min_training_samples': 3
        },
        'storage': {
            'backend': 'memory'
        }
    }


def demo_face_registry():
    """Demonstrate face registry usage."""
    print("Facebank Demo")
    print("=" * 40)

    from facebank.recognizer import FaceRegistry

    registry = FaceRegistry(create_demo_config())
    print("✓ Face registry initialized")

    base = np.array([0.1, 0.2, 0.3, 0.4], dtype=np.float32)
    samples = [base, base + 0.01, base - 0.01]

    result = registry.train_identity(
        "Jane Doe",
        samples,
        progress_callback=lambda i, total: print(f"  sample {i}/{total}")
    )
    print(f"✓ {result['message']}")

    recognition = registry.recognize(base + 0.005)
    if recognition['is_match']:
        match = recognition['match']
        print(f"✓ Recognized {match.person_name} "
              f"(confidence {match.confidence:.3f}, distance {match.distance:.4f})")

    far = registry.recognize(np.array([0.9, 0.9, 0.9, 0.9], dtype=np.float32))
    print(f"✓ Far vector matched: {far['is_match']}")

    exported = registry.export_database()
    registry.clear_database()
    imported = registry.import_database(exported)
    print(f"✓ {imported['message']}")

    stats = registry.get_statistics()
    print(f"\nDatabase statistics:")
    print(f"- Faces: {stats['total_faces']}")
    print(f"- Descriptors: {stats['total_descriptors']}")
    print(f"- Storage size: {stats['storage_size']} bytes")

    print("\n✓ Demo completed successfully!")


def show_usage():
    """Show how to use the command line interface."""
    print("\nFacebank Usage:")
    print("=" * 40)
    print("\n1. Install:")
    print("   pip install -e .")
    print("\n2. Commands:")
    print("   python main.py stats                      # Database statistics")
    print("   python main.py list                       # Enrolled people")
    print("   python main.py train 'Jane Doe' vecs.json # Train from embeddings")
    print("   python main.py recognize vec.json         # Identify an embedding")
    print("   python main.py validate 'Jane Doe'        # Training quality")
    print("   python main.py export backup.json         # Export database")
    print("   python main.py import backup.json         # Import database")
    print("   python main.py thresholds --max-distance 0.5")
    print("\n3. Configuration:")
    print("   Edit config/config.yaml to customize behavior")


if __name__ == '__main__':
    if len(sys.argv) > 1 and sys.argv[1] == '--usage':
        show_usage()
    else:
        demo_face_registry()
