"""
rental_access.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories.
- Implement the access store consumed by the auth gates.
"""

# Package marker.
