"""Stylist chat endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from stylesense.core.stylist import StylistAdvisor
from stylesense.db.store import GarmentStore

from ..deps import get_store, get_stylist

router = APIRouter()


class StylistRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Question for the stylist")


class StylistResponse(BaseModel):
    advice: str


@router.post("/stylist", response_model=StylistResponse)
def ask_stylist(
    request: StylistRequest,
    advisor: StylistAdvisor = Depends(get_stylist),
    store: GarmentStore = Depends(get_store),
):
    """Get outfit advice based on the whole wardrobe."""
    advice = advisor.advise(request.query, store.list_garments())
    return StylistResponse(advice=advice)
