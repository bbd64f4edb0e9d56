#!/usr/bin/env python3
"""
Main FastAPI application for the HACCP documentation wizard.
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from urllib.parse import quote

from .controller import Controller
from ..errors import ExportError, ResultNotReadyError, SessionNotFoundError, WizardError
from ..schemas.io_models import (
    ActionRequest,
    SessionCreateRequest,
    SessionCreateResponse,
    SuggestionResponse,
    TransitionResponse,
    WizardView,
)
from ..wizard.transitions import Action

# Initialize FastAPI app
app = FastAPI(
    title="HACCP Wizard API",
    description="Guided food-safety data collection and AI-generated HACCP/GHP/GMP documentation",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize components
controller = Controller()


def _http_error(e: WizardError) -> HTTPException:
    if isinstance(e, SessionNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ResultNotReadyError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ExportError):
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@app.post("/session", response_model=SessionCreateResponse)
async def create_session(request: SessionCreateRequest):
    """
    Create a new wizard session.

    Args:
        request: Session creation request

    Returns:
        Session creation response
    """
    session_id, created = controller.create_session(request.session_id)
    return SessionCreateResponse(session_id=session_id, created=created)


@app.get("/session/{session_id}", response_model=WizardView)
async def get_session(session_id: str):
    """Current step, gating status and collected data."""
    try:
        return controller.view(session_id)
    except WizardError as e:
        raise _http_error(e)


@app.delete("/session/{session_id}")
async def delete_session(session_id: str):
    if not controller.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"deleted": True}


@app.post("/session/{session_id}/actions", response_model=TransitionResponse)
async def apply_action(session_id: str, request: ActionRequest):
    """Apply one form mutation (add_product, set_detail, ...)."""
    try:
        if controller.is_generating(session_id):
            raise HTTPException(status_code=409, detail="Documentation is being generated")
        applied = controller.dispatch(session_id, Action(type=request.type, payload=request.payload))
        return TransitionResponse(moved=applied, state=controller.view(session_id))
    except WizardError as e:
        raise _http_error(e)


@app.post("/session/{session_id}/next", response_model=TransitionResponse)
async def next_step(session_id: str):
    """
    Advance to the next step, or generate the documentation from the last step.
    """
    try:
        if controller.is_generating(session_id):
            raise HTTPException(status_code=409, detail="Documentation is being generated")
        moved = await controller.advance(session_id)
        return TransitionResponse(moved=moved, state=controller.view(session_id))
    except WizardError as e:
        raise _http_error(e)


@app.post("/session/{session_id}/back", response_model=TransitionResponse)
async def previous_step(session_id: str):
    try:
        moved = controller.back(session_id)
        return TransitionResponse(moved=moved, state=controller.view(session_id))
    except WizardError as e:
        raise _http_error(e)


@app.post("/session/{session_id}/suggest/{kind}", response_model=SuggestionResponse)
async def suggest(session_id: str, kind: str):
    """AI suggestions: dishes, allergens, hazards, stages or procedures."""
    try:
        suggestions = await controller.suggest(session_id, kind)
        return SuggestionResponse(kind=kind, suggestions=suggestions, state=controller.view(session_id))
    except WizardError as e:
        raise _http_error(e)


@app.get("/session/{session_id}/export/{fmt}")
async def export_document(session_id: str, fmt: str):
    """Download the generated documentation as DOCX or PDF."""
    try:
        content, filename, media_type = controller.export(session_id, fmt)
    except WizardError as e:
        raise _http_error(e)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    from .config import Config
    Config.debug_print()
    uvicorn.run(app, host="0.0.0.0", port=8000)
