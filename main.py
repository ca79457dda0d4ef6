#!/usr/bin/env python3
"""
FeedRewrite - Feed Entry Rewriting Plugins
==========================================

Developer CLI entry point.

Usage:
    python main.py --help                          # Show all commands
    python main.py check-config                    # Show effective settings
    python main.py test-rules rules.json page.html # Try Replacer rules on a file
    python main.py preview FEED config.json        # Run plugins over a feed
"""

import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from feedrewrite.cli import main


if __name__ == "__main__":
    main()
