"""SwiftTask: boards -> folders -> tasks with search and deadline countdowns."""

__version__ = "0.1.0"
