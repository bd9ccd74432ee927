"""Database models and utilities."""

from .models import Base, Garment, Outfit
from .store import GarmentStore

__all__ = [
    "Base",
    "Garment",
    "Outfit",
    "GarmentStore",
]
