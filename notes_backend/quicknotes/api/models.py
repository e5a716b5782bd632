from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, Integer, String, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

DEFAULT_TITLE = "Untitled"
DEFAULT_COLOR = "#ffffff"


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    User entity with unique email and hashed password.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    notes = relationship("Note", back_populates="owner", cascade="all, delete-orphan")


class Note(Base):
    """
    Note entity owned by a user.

    Lifecycle is carried by two independent flags: is_archived and is_deleted.
    A deleted note sits in the trash whatever its archived flag says; restoring
    it brings back the archived flag it had before.
    """
    __tablename__ = "notes"
    # AUTOINCREMENT keeps SQLite from reusing ids of destroyed notes
    __table_args__ = (
        Index("ix_notes_user_state", "user_id", "is_deleted", "is_archived"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False, default=DEFAULT_TITLE)
    content = Column(Text, default="", nullable=False)
    color = Column(Text, default=DEFAULT_COLOR, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    reminder = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="notes")
