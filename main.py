#!/usr/bin/env python3
"""
PROV OAI-PMH Harvester
Main entry point for the application

Usage:
    python main.py --help                       # Show help
    python main.py harvest                      # Harvest and write snapshots
    python main.py harvest -s raw/              # ...also save raw responses
    python main.py harvest -u raw/ --split      # Rebuild split snapshots from saved responses
    python main.py validate prov-oai-DATE.xml   # Validate a snapshot
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from cli.main import main

if __name__ == '__main__':
    main()
