#!/usr/bin/env python3
"""
Facebank - Main Entry Point

Run this file to manage the face embedding database from the command line.
"""

import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from facebank.main import main

if __name__ == '__main__':
    sys.exit(main())
