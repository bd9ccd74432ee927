"""Outfit endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from stylesense.db.models import Outfit
from stylesense.db.store import GarmentStore

from ..deps import get_store

router = APIRouter()


class CreateOutfitRequest(BaseModel):
    """Request to save an outfit."""

    name: Optional[str] = None
    description: Optional[str] = None
    items: list[int] = Field(default_factory=list, description="Wardrobe ids in order")
    image_url: Optional[str] = None


class OutfitResponse(BaseModel):
    """A saved outfit."""

    id: int
    name: Optional[str]
    description: Optional[str]
    items: list[int]
    image_url: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_model(cls, outfit: Outfit) -> "OutfitResponse":
        return cls(
            id=outfit.id,
            name=outfit.name,
            description=outfit.description,
            items=outfit.item_ids(),
            image_url=outfit.image_url,
            created_at=outfit.created_at,
        )


@router.get("/outfits", response_model=list[OutfitResponse])
async def list_outfits(store: GarmentStore = Depends(get_store)):
    """List saved outfits, newest first."""
    return [OutfitResponse.from_model(o) for o in store.list_outfits()]


@router.post("/outfits")
async def create_outfit(request: CreateOutfitRequest, store: GarmentStore = Depends(get_store)):
    """Save an outfit."""
    outfit_id = store.create_outfit(
        name=request.name,
        description=request.description,
        items=request.items,
        image_url=request.image_url,
    )
    return {"id": outfit_id}
