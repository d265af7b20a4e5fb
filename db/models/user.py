"""
User model.

Account records are owned by the user service; this table only carries the
fields login needs.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text

from db.engine import Base


class User(Base):
    """User account for authentication."""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    hashed_password = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Integer, nullable=False)  # Unix timestamp

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "hashed_password": self.hashed_password,
            "active": self.active,
            "created_at": self.created_at,
        }
