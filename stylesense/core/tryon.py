"""Multi-layer virtual try-on.

Garments are applied to the user photo one at a time. The image returned for
step N becomes the base image for step N+1, so steps always run sequentially
and in the order the user selected them.

Flow per step:
1. Wait a fixed delay before every step after the first (rate-limit avoidance)
2. Ask the image model to layer the garment onto the current composite
3. Retry the same step on quota errors (2s, then 4s), abort on anything else
4. Feed the returned image forward
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Protocol, Sequence, Union

from .errors import QuotaExceededError

logger = logging.getLogger(__name__)

STEP_DELAY = 1.5
RETRY_DELAYS = (2.0, 4.0)

TRYON_INSTRUCTION = (
    "Perform a virtual try-on. Layer the {category} ({color}) garment from the "
    "second image onto the person in the first image. The person may already be "
    "wearing garments added in earlier steps: keep those layers visible and put "
    "this garment on top of or alongside them instead of replacing the outfit. "
    "Step {step} of {total}. Ensure realistic draping and fit."
)


class CompositionClient(Protocol):
    async def compose_images(
        self, base_image: str, garment_image: str, instruction: str
    ) -> Optional[str]: ...


@dataclass
class GarmentLayer:
    """A garment queued for try-on."""

    image: str
    category: str
    color: str


@dataclass
class TryOnProgress:
    """Progress of a try-on run."""

    current: int
    total: int
    stage: str  # "started" or "completed"

    def to_dict(self) -> dict:
        return {"current": self.current, "total": self.total, "stage": self.stage}


ProgressCallback = Callable[[TryOnProgress], Union[None, Awaitable[None]]]


@dataclass
class TryOnSession:
    """State of a single try-on run. Lives only for the duration of the run."""

    base_photo: str
    garment_queue: list[GarmentLayer]
    current_index: int = 0
    current_composite: str = ""
    skipped_layers: int = 0
    progress: Optional[TryOnProgress] = None

    def __post_init__(self):
        if not self.current_composite:
            self.current_composite = self.base_photo

    @property
    def total(self) -> int:
        return len(self.garment_queue)


def build_instruction(layer: GarmentLayer, step: int, total: int) -> str:
    return TRYON_INSTRUCTION.format(
        category=layer.category, color=layer.color, step=step, total=total
    )


class TryOnCompositor:
    """Sequentially layers garments onto a photo."""

    def __init__(
        self,
        client: CompositionClient,
        step_delay: float = STEP_DELAY,
        retry_delays: Sequence[float] = RETRY_DELAYS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.step_delay = step_delay
        self.retry_delays = tuple(retry_delays)
        self._sleep = sleep

    async def run(
        self,
        base_photo: str,
        garments: Sequence[GarmentLayer],
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Apply every garment to the photo, in order.

        Args:
            base_photo: User photo (data URI)
            garments: Garments in selection order; duplicates are applied again
            on_progress: Called with a TryOnProgress before and after each step

        Returns:
            Data URI of the final composite

        Raises:
            ValueError: No garments were given
            QuotaExceededError: A step still hit the quota after all retries
            StyleSenseError: Any other step failure (no retry)
        """
        session = await self.run_session(base_photo, garments, on_progress)
        return session.current_composite

    async def run_session(
        self,
        base_photo: str,
        garments: Sequence[GarmentLayer],
        on_progress: Optional[ProgressCallback] = None,
    ) -> TryOnSession:
        """Same as run() but returns the finished session."""
        if not garments:
            raise ValueError("At least one garment is required for try-on")

        session = TryOnSession(base_photo=base_photo, garment_queue=list(garments))
        logger.info(f"Starting try-on with {session.total} layer(s)")

        for index, layer in enumerate(session.garment_queue):
            step = index + 1
            session.current_index = index
            await self._report(session, on_progress, TryOnProgress(step, session.total, "started"))

            if index > 0:
                await self._sleep(self.step_delay)

            result = await self._apply_layer(
                session.current_composite,
                layer,
                build_instruction(layer, step, session.total),
                step,
            )

            if result:
                session.current_composite = result
            else:
                session.skipped_layers += 1
                logger.warning(
                    f"Try-on step {step}/{session.total} ({layer.category}) returned no image; "
                    "composite left unchanged"
                )

            await self._report(session, on_progress, TryOnProgress(step, session.total, "completed"))

        logger.info(
            f"Try-on finished: {session.total} layer(s), {session.skipped_layers} skipped"
        )
        return session

    async def _apply_layer(
        self,
        composite: str,
        layer: GarmentLayer,
        instruction: str,
        step: int,
    ) -> Optional[str]:
        """One layering step with bounded retry on quota errors."""
        attempts = len(self.retry_delays) + 1

        for attempt in range(attempts):
            try:
                return await self.client.compose_images(composite, layer.image, instruction)
            except QuotaExceededError:
                if attempt == attempts - 1:
                    logger.error(f"Try-on step {step} exhausted {attempts} attempts")
                    raise
                delay = self.retry_delays[attempt]
                logger.warning(
                    f"Quota hit on try-on step {step}, retrying in {delay}s "
                    f"(attempt {attempt + 2}/{attempts})"
                )
                await self._sleep(delay)

        return None

    async def _report(
        self,
        session: TryOnSession,
        on_progress: Optional[ProgressCallback],
        progress: TryOnProgress,
    ) -> None:
        session.progress = progress
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result
