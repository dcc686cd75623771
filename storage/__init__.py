"""
Persistence collaborators for the ingestion pipeline.

Modules:
    base: Store interface and the Collection enum
    postgres: SQLAlchemy async implementation (production)
    memory: In-process implementation (tests, dry runs)
"""

__all__ = [
    "Collection",
    "Store",
    "PostgresStore",
    "MemoryStore",
]
