#!/usr/bin/env python3
"""
Dataset Charting Service

Upload a tabular dataset and chart two of its columns:
- Upload CSV or JSON files and retrieve the stored copies
- Load a stored file into the session and list its columns
- Render bar, line, scatter, pie and grouped bar charts
- Export the active chart as an HTML page (plotly) or PNG (matplotlib)
"""

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from typing import Optional
import uvicorn
import logging
from datetime import datetime

from charting import __version__
from charting.chart_data import coerce_numeric
from charting.config import Settings, get_settings
from charting.dataset_store import DatasetStore
from charting.errors import ChartServiceError
from charting.models import ChartSpec, ChartType, LoadRequest
from charting.renderer import get_renderer
from charting.session import ActiveChart, ChartSession

logger = logging.getLogger(__name__)

router = APIRouter()

CHART_TYPES = {
    ChartType.BAR: {
        "description": "Numeric y values per category of x",
        "required_columns": 2,
        "column_types": ["category", "numeric"],
    },
    ChartType.LINE: {
        "description": "Numeric y values across the categories of x, in record order",
        "required_columns": 2,
        "column_types": ["category", "numeric"],
    },
    ChartType.SCATTER: {
        "description": "Relationship between two numeric variables",
        "required_columns": 2,
        "column_types": ["numeric", "numeric"],
    },
    ChartType.PIE: {
        "description": "Share of each x category in the y total",
        "required_columns": 2,
        "column_types": ["category", "non-negative numeric"],
    },
    ChartType.GROUPED_BAR: {
        "description": "Configured series columns side by side per x category; y is ignored",
        "required_columns": 1,
        "column_types": ["category"],
        "optional": ["series_columns"],
    },
}

# ─── DEPENDENCIES ─────────────────────────────────────────────────────────────

def get_session(request: Request) -> ChartSession:
    return request.app.state.session


def get_store(request: Request) -> DatasetStore:
    return request.app.state.store


def chart_payload(active: Optional[ActiveChart], session: ChartSession) -> dict:
    if active is None:
        return {"rendered": False, "message": "No chart rendered."}
    return {
        "rendered": True,
        "renderer": session.renderer.name,
        "chart": active.data.to_dict(),
    }

# ─── API ENDPOINTS ───────────────────────────────────────────────────────────

@router.get("/")
async def root(request: Request):
    """Root endpoint with service information."""
    return {
        "service": request.app.state.settings.service_name,
        "version": __version__,
        "status": "operational",
        "capabilities": [t.value for t in CHART_TYPES],
    }


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": request.app.state.settings.service_name,
    }


@router.post("/upload")
async def upload_file(data_file: Optional[UploadFile] = File(None, alias="dataFile"),
                      store: DatasetStore = Depends(get_store)):
    """Store an uploaded dataset and report its stored name and mimetype."""
    if data_file is None or not data_file.filename:
        return PlainTextResponse("No file uploaded.", status_code=400)

    content = await data_file.read()
    stored = store.store(data_file.filename, content, data_file.content_type)
    return stored.to_dict()


@router.post("/dataset")
async def load_dataset(request: LoadRequest,
                       session: ChartSession = Depends(get_session),
                       store: DatasetStore = Depends(get_store)):
    """Load a stored file into the session and render its default chart.

    A chart that cannot be drawn does not undo the load: the dataset is
    reported as loaded with ``rendered: false`` and the reason.
    """
    try:
        logger.info(f"Loading dataset {request.filename} ({request.mimetype})")
        content = store.read_text(request.filename)
        session.load(content, request.mimetype)

    except ChartServiceError as e:
        logger.error(f"Dataset load failed: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    columns = session.columns
    result = {
        "filename": request.filename,
        "records": len(session.dataset),
        "columns": list(columns.available),
        "default_x": columns.default_x,
        "default_y": columns.default_y,
    }

    try:
        active = session.render(ChartSpec(chart_type=request.chart_type or session.default_chart_type))
    except ChartServiceError as e:
        logger.error(f"Default chart rendering failed: {e}")
        return {**result, "rendered": False, "message": str(e)}

    return {**result, **chart_payload(active, session)}


@router.get("/columns")
async def get_columns(session: ChartSession = Depends(get_session)):
    """Columns of the current dataset with default and selected axes."""
    columns = session.columns
    return {
        "available": list(columns.available),
        "default_x": columns.default_x,
        "default_y": columns.default_y,
        "selected_x": session.selected_x,
        "selected_y": session.selected_y,
    }


@router.get("/dataset_info")
async def get_dataset_info(session: ChartSession = Depends(get_session)):
    """Basic information about the current dataset for plotting."""
    df = session.dataset.to_frame()
    numeric = {col: int(df[col].map(coerce_numeric).notna().sum()) for col in df.columns}

    return {
        "shape": {"rows": df.shape[0], "columns": df.shape[1]},
        "columns": df.columns.tolist(),
        "missing_values": {col: int(n) for col, n in df.isnull().sum().items()},
        "numeric_values": numeric,
    }


@router.get("/chart_types")
async def get_chart_types():
    """List of available chart types and their requirements."""
    return {"chart_types": {t.value: info for t, info in CHART_TYPES.items()}}


@router.post("/render")
async def render_chart(spec: ChartSpec, session: ChartSession = Depends(get_session)):
    """Render a chart of the current dataset, replacing the active one."""
    try:
        logger.info(f"Rendering {spec.chart_type.value}: x={spec.x_column}, y={spec.y_column}")
        active = session.render(spec)

    except ChartServiceError as e:
        logger.error(f"Chart rendering failed: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    if active is None:
        message = "No data to render." if not session.dataset else "X or Y column not selected."
        return {"rendered": False, "message": message}
    return chart_payload(active, session)


@router.get("/chart")
async def get_chart(session: ChartSession = Depends(get_session)):
    """Export of the active chart: HTML for plotly, PNG for matplotlib."""
    content = session.export()
    if content is None:
        raise HTTPException(status_code=404, detail="No chart rendered.")
    return Response(content=content, media_type=session.renderer.media_type)


@router.delete("/chart")
async def delete_chart(session: ChartSession = Depends(get_session)):
    """Tear down the active chart."""
    session.clear()
    return {"rendered": False}

# ─── APP FACTORY ──────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.service_name,
        description="Upload a dataset and chart two of its columns",
        version=__version__,
        docs_url="/docs",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = DatasetStore(settings.upload_dir)
    app.state.settings = settings
    app.state.store = store
    app.state.session = ChartSession(
        renderer=get_renderer(settings.renderer, settings.chart_width, settings.chart_height),
        series_columns=settings.grouped_bar_columns,
        default_chart_type=settings.default_chart_type,
    )

    app.include_router(router)
    app.mount("/uploads", StaticFiles(directory=store.root), name="uploads")
    return app


settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())

app = create_app(settings)

# ─── MAIN ────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )
