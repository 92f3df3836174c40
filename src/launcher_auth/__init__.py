"""Account authentication and credential lifecycle for the game launcher."""

__version__ = "0.1.0"
