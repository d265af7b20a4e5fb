"""
Auth models for refresh sessions and revoked credentials.

SessionRecord: Refresh token tracking with single-use rotation
RevokedCredentialRecord: Access tokens invalidated before their natural expiry
"""

from sqlalchemy import Boolean, Column, Integer, String

from db.engine import Base


class SessionRecord(Base):
    """
    Refresh session for a user.

    The token column holds the signed refresh credential itself.
    """
    __tablename__ = "sessions"

    token = Column(String(500), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    created_at = Column(Integer, nullable=False)  # Unix timestamp
    expires_at = Column(Integer, nullable=False, index=True)  # Unix timestamp
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    used = Column(Boolean, nullable=False, default=False)
    last_used_at = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<SessionRecord(token={self.token[:12]}..., user_id={self.user_id}, used={self.used})>"


class RevokedCredentialRecord(Base):
    """
    Access credential revoked on logout or reuse detection.

    expires_at mirrors the credential's own exp claim and bounds how long
    the row is kept.
    """
    __tablename__ = "revoked_credentials"

    token = Column(String(1000), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    revoked_at = Column(Integer, nullable=False)  # Unix timestamp
    reason = Column(String(100), nullable=False)
    ip_address = Column(String(45), nullable=True)
    expires_at = Column(Integer, nullable=False, index=True)  # Unix timestamp

    def __repr__(self):
        return f"<RevokedCredentialRecord(token={self.token[:12]}..., reason={self.reason})>"
