"""
Errors
=======
Gameplay never raises for bounds, walls or unreachable targets; those are
ordinary results. Only startup problems are fatal.
"""


class StartupError(Exception):
    """The game cannot start (terminal too small, no colour support)."""
