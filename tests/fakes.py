"""Test doubles for the Gemini client and the clock."""


class FakeCompositionClient:
    """Stands in for GeminiClient.compose_images.

    Each scripted outcome is either an image string, None (no image in the
    response) or an exception instance to raise.
    """

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []

    async def compose_images(self, base_image, garment_image, instruction):
        self.calls.append({
            "base_image": base_image,
            "garment_image": garment_image,
            "instruction": instruction,
        })
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        else:
            outcome = f"composite-{len(self.calls)}"
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeTextClient:
    """Stands in for GeminiClient.generate_json / generate_text."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate_json(self, prompt, image_data, schema):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response

    def generate_text(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


class FakeSleep:
    """Simulated clock for delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)

    @property
    def elapsed(self):
        return sum(self.delays)

