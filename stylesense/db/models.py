"""SQLAlchemy models for the StyleSense database."""

import json

from sqlalchemy import Column, DateTime, Integer, String, Text, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Garment(Base):
    """A photographed and classified wardrobe item."""

    __tablename__ = "wardrobe"

    id = Column(Integer, primary_key=True, autoincrement=True)
    image_data = Column(Text, nullable=False)  # data URI
    category = Column(String(100), nullable=False)
    color = Column(String(100), nullable=False)
    tags = Column(Text, nullable=False, default="")  # "denim, casual, striped"
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (Index("ix_wardrobe_created", "created_at"),)


class Outfit(Base):
    """A saved outfit."""

    __tablename__ = "outfits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    items = Column(Text, nullable=False, default="[]")  # JSON array of wardrobe ids
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (Index("ix_outfits_created", "created_at"),)

    def item_ids(self) -> list[int]:
        return [int(item_id) for item_id in json.loads(self.items or "[]")]
