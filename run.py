#!/usr/bin/env python3
"""
ENDLESS DUNGEON Launcher
=========================
Run this script to start the game.
"""

from endless_dungeon.main import main

if __name__ == "__main__":
    main()
