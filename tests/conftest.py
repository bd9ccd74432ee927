# Test fixtures and configuration
import base64
import io

import pytest
from PIL import Image

from stylesense.db.store import GarmentStore

from fakes import FakeSleep


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def store(tmp_path):
    """A store backed by a throwaway SQLite file."""
    store = GarmentStore(f"sqlite:///{tmp_path / 'test.db'}")
    yield store
    store.engine.dispose()


@pytest.fixture
def png_bytes():
    """A small valid PNG image."""
    output = io.BytesIO()
    Image.new("RGB", (8, 12), color=(200, 30, 30)).save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def png_data_uri(png_bytes):
    return f"data:image/png;base64,{base64.b64encode(png_bytes).decode()}"
