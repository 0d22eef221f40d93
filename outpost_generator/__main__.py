#!/usr/bin/env python3
"""
Outpost generator - Entry point for the oil outpost generator.

This module allows running the generator as:
    python -m outpost_generator pumpjacks.txt
    outpost-gen pumpjacks.txt  (when installed via pip)
"""

from outpost_generator.cli import main

if __name__ == "__main__":
    main()
