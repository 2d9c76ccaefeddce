"""memoryflow: spaced-repetition scheduling for a tree of topics."""

__version__ = "0.1.0"
