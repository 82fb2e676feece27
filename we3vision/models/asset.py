from sqlalchemy import Column, Integer, String, DateTime, func
from we3vision.core.database import Base


class Asset(Base):
    """Named site asset: a unique key mapped to an image URL and alt text."""
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)
    url = Column(String, nullable=False)
    alt = Column(String, default="", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Asset(key='{self.key}', url='{self.url}')>"
