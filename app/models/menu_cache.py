"""
Menu cache model: one mutable slot per user holding the last recommended menus.
"""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from app.models.database import Base, utcnow


class MenuCache(Base):
    __tablename__ = "menu_cache"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    menus = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationship
    user = relationship("User", back_populates="menu_cache")

    def __repr__(self):
        return f"<MenuCache(user_id='{self.user_id}', updated_at='{self.updated_at}')>"
