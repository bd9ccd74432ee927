"""Virtual try-on endpoints."""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from stylesense.config import Settings, get_settings, has_elevated_credential
from stylesense.core.errors import ConfirmationRequiredError, StyleSenseError
from stylesense.core.images import decode_data_uri
from stylesense.core.tryon import GarmentLayer, TryOnCompositor, TryOnProgress
from stylesense.db.store import GarmentStore

from ..deps import get_api_key_override, get_compositor, get_store

logger = logging.getLogger(__name__)

router = APIRouter()

MULTI_LAYER_WARNING = (
    "Multi-layer try-on is resource-intensive and may hit free tier limits. "
    "Connect a higher-tier API key, or resend with confirmed=true to proceed anyway."
)


class TryOnRequest(BaseModel):
    """Request body for a try-on run."""

    user_photo: str = Field(..., min_length=1, description="Data URI of the user photo")
    garment_ids: list[int] = Field(..., min_length=1, description="Wardrobe ids in layering order")
    confirmed: bool = Field(False, description="Proceed with multiple layers without a higher-tier key")


class TryOnResponse(BaseModel):
    image: str
    total: int
    skipped_layers: int


def load_layers(
    request: TryOnRequest,
    store: GarmentStore,
    settings: Settings,
    override_key: Optional[str],
) -> list[GarmentLayer]:
    """Validate the photo, check the confirmation policy and load garments in selection order."""
    decode_data_uri(request.user_photo)

    if (
        len(request.garment_ids) > 1
        and not request.confirmed
        and not has_elevated_credential(settings, override_key)
    ):
        raise ConfirmationRequiredError(MULTI_LAYER_WARNING)

    return [
        GarmentLayer(image=g.image_data, category=g.category, color=g.color)
        for g in store.get_garments(request.garment_ids)
    ]


@router.post("/tryon", response_model=TryOnResponse)
async def generate_tryon(
    request: TryOnRequest,
    compositor: TryOnCompositor = Depends(get_compositor),
    store: GarmentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    override_key: Optional[str] = Depends(get_api_key_override),
):
    """Layer the selected garments onto the user photo and return the result."""
    layers = load_layers(request, store, settings, override_key)
    session = await compositor.run_session(request.user_photo, layers)
    return TryOnResponse(
        image=session.current_composite,
        total=session.total,
        skipped_layers=session.skipped_layers,
    )


@router.post("/tryon/stream")
async def stream_tryon(
    request: TryOnRequest,
    compositor: TryOnCompositor = Depends(get_compositor),
    store: GarmentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    override_key: Optional[str] = Depends(get_api_key_override),
):
    """
    Same as /tryon but streams newline-delimited JSON events.

    Emits {"event": "progress", ...} for every step, then a single
    {"event": "result", ...} or {"event": "error", ...}.
    """
    layers = load_layers(request, store, settings, override_key)

    async def events():
        queue: asyncio.Queue = asyncio.Queue()

        async def on_progress(progress: TryOnProgress):
            await queue.put({"event": "progress", **progress.to_dict()})

        async def runner():
            try:
                session = await compositor.run_session(request.user_photo, layers, on_progress)
                await queue.put({
                    "event": "result",
                    "image": session.current_composite,
                    "total": session.total,
                    "skipped_layers": session.skipped_layers,
                })
            except StyleSenseError as e:
                logger.warning(f"Streamed try-on failed: {e.message}")
                await queue.put({"event": "error", **e.to_dict()})
            except Exception as e:
                logger.exception("Streamed try-on crashed")
                await queue.put({"event": "error", "error": str(e), "kind": "error"})
            finally:
                await queue.put(None)

        task = asyncio.create_task(runner())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield json.dumps(event) + "\n"
        finally:
            # Client went away: abandon the run
            if not task.done():
                task.cancel()

    return StreamingResponse(events(), media_type="application/x-ndjson")
