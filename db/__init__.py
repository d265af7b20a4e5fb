"""
Database module for the session service.

Provides SQLAlchemy models and the async engine manager.
"""

from db.engine import Base, DatabaseManager

__all__ = ["Base", "DatabaseManager"]
