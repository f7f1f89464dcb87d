"""
target_gate.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for the gate's store.
"""

# Package marker.
