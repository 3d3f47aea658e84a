from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from lernpfad.db.base import Base


class User(Base):
    """
    Local mirror of a learner known to the external auth provider.
    Created the first time a valid token for a new subject arrives.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Subject ("sub") claim issued by the auth provider
    external_id = Column(String(255), unique=True, index=True, nullable=False)

    # Shown on the leaderboard
    display_name = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Track when user was last active (updated on every authenticated request)
    last_active = Column(DateTime(timezone=True), nullable=True)
