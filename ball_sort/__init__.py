"""
Ball Sort Package
=================

Rule engine for a tube/ball sorting puzzle:

- Level difficulty table for 1000 levels
- Puzzle generation
- Move validation, undo and hints
- Completion detection and star rating
- The game session state machine and its events

All tunable parameters are in game_config.yaml.
"""
