"""Repository layer: store access helpers (SQLite / MariaDB).

Keep functions thin and focused, so services avoid SQL strings. Every value
is bound as a parameter; the only formatted fragment is an allowlisted
sort column.
"""
from __future__ import annotations
