"""
Shared test fixtures: temporary upload directory, app, client, sample datasets.
"""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# Keep the module-level app in main.py away from the working directory
os.environ.setdefault("CHART_SERVICE_UPLOAD_DIR", tempfile.mkdtemp(prefix="uploads-"))

from charting.config import Settings
from charting.models import Dataset
from charting.renderer import ChartRenderer
from charting.session import ChartSession
from main import create_app


RATES_CSV = "State,Rate,Inpatient Physician,Outpatient Physician\nCA,10%,5,7\nNY,20%,6,n/a\n"

RATES_JSON = (
    '[{"State": "CA", "Rate": 10, "Visits": "3"},'
    ' {"State": "NY", "Rate": 20.5, "Visits": "4"}]'
)


class RecordingRenderer(ChartRenderer):
    """Renderer that draws nothing and remembers every figure it hands out."""

    name = "recording"
    media_type = "text/plain"

    def __init__(self):
        super().__init__()
        self.drawn = []
        self.released = []

    def draw(self, data):
        figure = {"id": len(self.drawn), "data": data}
        self.drawn.append(figure)
        return figure

    def export(self, figure):
        return f"chart {figure['id']}".encode()

    def release(self, figure):
        self.released.append(figure)

    @property
    def alive(self):
        return [f for f in self.drawn if not any(f is r for r in self.released)]


@pytest.fixture
def rates_dataset():
    return Dataset.from_rows([
        {"State": "CA", "Rate": "10%", "Inpatient Physician": "5", "Outpatient Physician": "7"},
        {"State": "NY", "Rate": "20%", "Inpatient Physician": "6", "Outpatient Physician": "n/a"},
    ])


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def session(renderer):
    return ChartSession(renderer=renderer)


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
