"""
CASCADE Web App - Browser UI for running a restoration cascade.
Upload a photo, follow the plan as it runs, and compare each step's
before/after images.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from cascade.images import load_image_ref
from cascade.orchestrator import RestorationCascade
from cascade.report import STATIC_DIR, TEMPLATES_DIR

ALREADY_RUNNING = "A restoration is already running"


def create_app(gateway, *, refresh_seconds: int = 2) -> FastAPI:
    """
    Build the web app around a single restoration cascade.

    Args:
        gateway: Gateway used for every run (built before the app, so a
            missing API key fails at startup)
        refresh_seconds: Page refresh interval while a run is in flight

    Returns:
        The FastAPI application
    """
    app = FastAPI(title="Restoration Cascade", docs_url=None, redoc_url=None)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    app.state.cascade = RestorationCascade(gateway)
    app.state.instructions = ""
    app.state.worker = None

    def _cascade() -> RestorationCascade:
        return app.state.cascade

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/state")
    def state(images: bool = True) -> dict:
        """Current run snapshot; ``images=false`` drops the image payloads."""
        return _cascade().state.to_dict(include_images=images)

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "state": _cascade().state,
                "instructions": app.state.instructions,
                "refresh_seconds": refresh_seconds,
            },
        )

    @app.post("/restore")
    async def restore(image: Optional[UploadFile] = File(None), instructions: str = Form("")):
        """
        Start a run for the uploaded photo.

        Responds 400 without a readable image and 409 while any run, including
        one abandoned by a reset, is still executing.
        """
        cascade = _cascade()
        if cascade.is_processing or cascade.is_busy:
            raise HTTPException(status_code=409, detail=ALREADY_RUNNING)

        data = await image.read() if image is not None else b""
        if not data:
            raise HTTPException(status_code=400, detail="An image is required")

        try:
            image_ref = load_image_ref(data, image.content_type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        worker = cascade.start(image_ref, instructions)
        if worker is None:
            raise HTTPException(status_code=409, detail=ALREADY_RUNNING)

        app.state.instructions = instructions
        app.state.worker = worker
        return RedirectResponse("/", status_code=303)

    @app.post("/reset")
    def reset():
        """Start over: clear the run and abandon it if it is still going."""
        _cascade().reset()
        app.state.instructions = ""
        return RedirectResponse("/", status_code=303)

    return app
