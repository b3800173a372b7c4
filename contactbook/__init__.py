"""Contact store: persistence/access layer for a single `contacts` table."""
__version__ = "0.1.0"
