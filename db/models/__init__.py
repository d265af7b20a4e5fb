"""
SQLAlchemy models for the session service.

All models inherit from db.engine.Base for Alembic migrations.
"""

from db.models.auth import RevokedCredentialRecord, SessionRecord
from db.models.user import User

__all__ = [
    "User",
    "SessionRecord",
    "RevokedCredentialRecord",
]
