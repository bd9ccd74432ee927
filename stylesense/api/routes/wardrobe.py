"""Wardrobe endpoints."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field

from stylesense.core.classifier import GarmentClassifier
from stylesense.core.errors import ValidationError
from stylesense.core.images import prepare_upload, decode_data_uri
from stylesense.db.models import Garment
from stylesense.db.store import GarmentStore

from ..deps import get_classifier, get_store

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateGarmentRequest(BaseModel):
    """Request to store an already classified garment."""

    image_data: str = Field(..., min_length=1, description="Data URI of the garment photo")
    category: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1)
    tags: str = Field("", description="Comma-joined tags")


class GarmentResponse(BaseModel):
    """A wardrobe item."""

    id: int
    image_data: str
    category: str
    color: str
    tags: str
    created_at: Optional[datetime]

    @classmethod
    def from_model(cls, garment: Garment) -> "GarmentResponse":
        return cls(
            id=garment.id,
            image_data=garment.image_data,
            category=garment.category,
            color=garment.color,
            tags=garment.tags,
            created_at=garment.created_at,
        )


class CreatedResponse(BaseModel):
    id: int


@router.get("/wardrobe", response_model=list[GarmentResponse])
async def list_wardrobe(store: GarmentStore = Depends(get_store)):
    """List all garments, newest first."""
    return [GarmentResponse.from_model(g) for g in store.list_garments()]


@router.post("/wardrobe", response_model=CreatedResponse)
async def add_garment(request: CreateGarmentRequest, store: GarmentStore = Depends(get_store)):
    """Store a garment whose attributes are already known."""
    decode_data_uri(request.image_data)
    garment_id = store.create_garment(
        image_data=request.image_data,
        category=request.category,
        color=request.color,
        tags=request.tags,
    )
    return CreatedResponse(id=garment_id)


@router.post("/wardrobe/upload", response_model=GarmentResponse)
def upload_garment(
    file: Optional[UploadFile] = File(None),
    image_base64: Optional[str] = Form(None),
    classifier: GarmentClassifier = Depends(get_classifier),
    store: GarmentStore = Depends(get_store),
):
    """
    Classify a garment photo and add it to the wardrobe.

    Accepts image via:
    - File upload (multipart/form-data)
    - Base64 encoded data (data URI or bare base64)

    Nothing is stored if classification fails.
    """
    if file:
        raw_bytes = file.file.read()
    elif image_base64:
        raw_bytes, _ = decode_data_uri(image_base64)
    else:
        raise ValidationError("No image provided. Send file or image_base64")

    image_data = prepare_upload(raw_bytes)
    analysis = classifier.classify(image_data)

    garment_id = store.create_garment(
        image_data=image_data,
        category=analysis.category,
        color=analysis.color,
        tags=analysis.tags_text(),
    )
    return GarmentResponse.from_model(store.get_garments([garment_id])[0])


@router.delete("/wardrobe/{garment_id}")
async def delete_garment(garment_id: int, store: GarmentStore = Depends(get_store)):
    """Delete a garment. Deleting a missing garment also succeeds."""
    store.delete_garment(garment_id)
    return {"success": True}
