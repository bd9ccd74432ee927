"""Garment and outfit persistence."""

import json
import logging
from typing import Optional, Sequence

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from stylesense.core.errors import GarmentNotFoundError, StoreError

from .models import Base, Garment, Outfit

logger = logging.getLogger(__name__)


class GarmentStore:
    """CRUD access to the wardrobe and outfits tables."""

    def __init__(self, database_url: str = "sqlite:///stylesense.db"):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize database: {e}") from e

    def create_garment(self, image_data: str, category: str, color: str, tags: str) -> int:
        """Insert a garment and return its id."""
        garment = Garment(image_data=image_data, category=category, color=color, tags=tags)
        try:
            with self._session_factory() as session:
                session.add(garment)
                session.commit()
                logger.info(f"Added garment {garment.id}: {category}, {color}")
                return garment.id
        except SQLAlchemyError as e:
            logger.error(f"Add garment error: {e}")
            raise StoreError("Failed to add garment") from e

    def list_garments(self) -> list[Garment]:
        """All garments, newest first."""
        try:
            with self._session_factory() as session:
                query = select(Garment).order_by(Garment.created_at.desc(), Garment.id.desc())
                return list(session.scalars(query))
        except SQLAlchemyError as e:
            logger.error(f"Fetch wardrobe error: {e}")
            raise StoreError("Failed to fetch wardrobe") from e

    def get_garments(self, garment_ids: Sequence[int]) -> list[Garment]:
        """
        Fetch garments in exactly the order given.

        Repeated ids produce repeated entries.

        Raises:
            GarmentNotFoundError: An id does not exist
        """
        try:
            with self._session_factory() as session:
                query = select(Garment).where(Garment.id.in_(set(garment_ids)))
                found = {garment.id: garment for garment in session.scalars(query)}
        except SQLAlchemyError as e:
            logger.error(f"Fetch garments error: {e}")
            raise StoreError("Failed to fetch garments") from e

        missing = next((gid for gid in garment_ids if gid not in found), None)
        if missing is not None:
            raise GarmentNotFoundError(missing)
        return [found[gid] for gid in garment_ids]

    def delete_garment(self, garment_id: int) -> None:
        """Delete a garment. Unknown ids are ignored."""
        try:
            with self._session_factory() as session:
                garment = session.get(Garment, garment_id)
                if garment is not None:
                    session.delete(garment)
                    session.commit()
                    logger.info(f"Deleted garment {garment_id}")
        except SQLAlchemyError as e:
            logger.error(f"Delete garment error: {e}")
            raise StoreError("Failed to delete garment") from e

    def create_outfit(
        self,
        name: Optional[str],
        description: Optional[str],
        items: Sequence[int],
        image_url: Optional[str] = None,
    ) -> int:
        """Insert an outfit and return its id."""
        outfit = Outfit(
            name=name,
            description=description,
            items=json.dumps(list(items)),
            image_url=image_url,
        )
        try:
            with self._session_factory() as session:
                session.add(outfit)
                session.commit()
                return outfit.id
        except SQLAlchemyError as e:
            logger.error(f"Add outfit error: {e}")
            raise StoreError("Failed to save outfit") from e

    def list_outfits(self) -> list[Outfit]:
        """All outfits, newest first."""
        try:
            with self._session_factory() as session:
                query = select(Outfit).order_by(Outfit.created_at.desc(), Outfit.id.desc())
                return list(session.scalars(query))
        except SQLAlchemyError as e:
            logger.error(f"Fetch outfits error: {e}")
            raise StoreError("Failed to fetch outfits") from e
