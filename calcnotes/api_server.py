"""
calcnotes API Server - FastAPI Backend for the Notebook Front-End
Provides REST API and WebSocket endpoints for live notebook evaluation.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import settings
from .constants import VIEW_MODES
from .engine import NotebookEngine, ReprocessResult
from .notebook_manager import NotebookManager
from .syntax_highlighter import SyntaxHighlighter

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class Position(BaseModel):
    x: int
    y: int


class Size(BaseModel):
    width: int
    height: int


class NotebookData(BaseModel):
    id: str
    name: str
    content: str
    position: Position
    size: Size


class NotebookCreateRequest(BaseModel):
    name: Optional[str] = None
    content: str = ""


class NotebookUpdateRequest(BaseModel):
    name: Optional[str] = None
    position: Optional[Position] = None
    size: Optional[Size] = None


class ReprocessRequest(BaseModel):
    text: str


class ContentUpdateRequest(BaseModel):
    content: str
    cursor: Optional[int] = None


class CursorRequest(BaseModel):
    content: str
    cursor: int


class LineResultData(BaseModel):
    line_index: int
    result: float
    expression: str


class PreviewData(BaseModel):
    line: int
    result: float


class ReprocessResponse(BaseModel):
    updated_text: str
    results: List[LineResultData]
    variables: Dict[str, float]
    preview: Optional[PreviewData] = None


class CommitResponse(BaseModel):
    committed: bool
    text: str
    cursor: int
    results: List[LineResultData] = []
    variables: Dict[str, float] = {}


class FileRequest(BaseModel):
    path: str
    name: Optional[str] = None


class ViewModeRequest(BaseModel):
    view_mode: str


class SyntaxHighlightRequest(BaseModel):
    text: str


class SyntaxHighlightResponse(BaseModel):
    highlights: List[Dict[str, Any]]


# =============================================================================
# FASTAPI APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.APP_TITLE,
    description="Backend API for the calcnotes calculator notebook",
    version=settings.VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

manager = NotebookManager(settings.STORAGE_PATH)
highlighter = SyntaxHighlighter()


@app.on_event("startup")
async def load_notebooks():
    """Restore saved notebooks, or start with one empty notebook."""
    if manager.storage_path and manager.load_from_file(manager.storage_path):
        return
    if not manager.notebooks:
        manager.create_notebook()


def _results_payload(results) -> List[Dict[str, Any]]:
    return [results[index].to_dict() for index in sorted(results)]


def _reprocess_payload(outcome: ReprocessResult, preview=None) -> Dict[str, Any]:
    return {
        "updated_text": outcome.updated_text,
        "results": _results_payload(outcome.results),
        "variables": outcome.variables,
        "preview": preview.to_dict() if preview else None,
    }


def _commit_payload(outcome, content: str, cursor: int) -> Dict[str, Any]:
    if outcome is None:
        return {"committed": False, "text": content, "cursor": cursor, "results": [], "variables": {}}
    return {
        "committed": True,
        "text": outcome.text,
        "cursor": outcome.cursor,
        "results": _results_payload(outcome.results),
        "variables": outcome.variables,
    }


def _require_notebook(notebook_id: str) -> Dict[str, Any]:
    notebook = manager.get_notebook(notebook_id)
    if notebook is None:
        raise HTTPException(status_code=404, detail=f"Notebook not found: {notebook_id}")
    return notebook


# =============================================================================
# API ENDPOINTS
# =============================================================================

@app.get("/")
@app.head("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "calcnotes API Server",
        "version": settings.VERSION,
        "status": "running",
        "timestamp": datetime.now().isoformat()
    }


@app.post("/api/reprocess", response_model=ReprocessResponse)
async def reprocess_text(request: ReprocessRequest):
    """
    Evaluate a notebook text with a fresh engine, without storing anything.
    """
    return _reprocess_payload(NotebookEngine().reprocess(request.text))


@app.get("/api/notebooks", response_model=List[NotebookData])
async def list_notebooks():
    return manager.list_notebooks()


@app.post("/api/notebooks", response_model=NotebookData, status_code=201)
async def create_notebook(request: NotebookCreateRequest):
    notebook_id = manager.create_notebook(request.name, request.content)
    return manager.get_notebook(notebook_id)


@app.get("/api/notebooks/{notebook_id}", response_model=NotebookData)
async def get_notebook(notebook_id: str):
    return _require_notebook(notebook_id)


@app.patch("/api/notebooks/{notebook_id}", response_model=NotebookData)
async def update_notebook(notebook_id: str, request: NotebookUpdateRequest):
    """Rename, move or resize a notebook window."""
    _require_notebook(notebook_id)
    if request.name is not None:
        manager.rename_notebook(notebook_id, request.name)
    if request.position is not None:
        manager.move_notebook(notebook_id, request.position.x, request.position.y)
    if request.size is not None:
        manager.resize_notebook(notebook_id, request.size.width, request.size.height)
    return manager.get_notebook(notebook_id)


@app.delete("/api/notebooks/{notebook_id}")
async def delete_notebook(notebook_id: str):
    _require_notebook(notebook_id)
    manager.delete_notebook(notebook_id)
    return {"status": "success", "notebooks": manager.list_notebooks()}


@app.put("/api/notebooks/{notebook_id}/content", response_model=ReprocessResponse)
async def update_content(notebook_id: str, request: ContentUpdateRequest):
    """
    Store edited text, reprocess it and return the rewritten text with the
    line results. The preview is computed for the caret line when a cursor
    offset is sent.
    """
    _require_notebook(notebook_id)
    outcome = manager.update_content(notebook_id, request.content)
    preview = None
    if request.cursor is not None:
        preview = manager.preview(notebook_id, outcome.updated_text, request.cursor)
    return _reprocess_payload(outcome, preview)


@app.post("/api/notebooks/{notebook_id}/preview", response_model=Optional[PreviewData])
async def preview_line(notebook_id: str, request: CursorRequest):
    _require_notebook(notebook_id)
    preview = manager.preview(notebook_id, request.content, request.cursor)
    return preview.to_dict() if preview else None


@app.post("/api/notebooks/{notebook_id}/commit", response_model=CommitResponse)
async def commit_line(notebook_id: str, request: CursorRequest):
    """
    Enter key: rewrite the caret line to "expr = result" when it evaluates.
    """
    _require_notebook(notebook_id)
    outcome = manager.commit(notebook_id, request.content, request.cursor)
    return _commit_payload(outcome, request.content, request.cursor)


@app.post("/api/notebooks/{notebook_id}/export")
async def export_notebook(notebook_id: str, request: FileRequest):
    _require_notebook(notebook_id)
    if not manager.export_notebook(notebook_id, request.path):
        raise HTTPException(status_code=500, detail=f"Error exporting notebook to {request.path}")
    return {"status": "success", "path": request.path}


@app.post("/api/notebooks/import", response_model=NotebookData, status_code=201)
async def import_notebook(request: FileRequest):
    notebook_id = manager.import_notebook(request.path, request.name)
    if notebook_id is None:
        raise HTTPException(status_code=400, detail=f"Could not import notebook from {request.path}")
    return manager.get_notebook(notebook_id)


@app.get("/api/settings/view-mode")
async def get_view_mode():
    return {"view_mode": manager.view_mode}


@app.put("/api/settings/view-mode")
async def set_view_mode(request: ViewModeRequest):
    if not manager.set_view_mode(request.view_mode):
        raise HTTPException(
            status_code=422,
            detail=f"Unknown view mode {request.view_mode!r}, expected one of {', '.join(VIEW_MODES)}"
        )
    return {"view_mode": manager.view_mode}


@app.post("/api/syntax-highlight", response_model=SyntaxHighlightResponse)
async def get_syntax_highlighting(request: SyntaxHighlightRequest):
    """
    Get syntax highlighting data for text without evaluation.
    """
    return SyntaxHighlightResponse(highlights=highlighter.highlight_text(request.text))


# =============================================================================
# WEBSOCKET ENDPOINTS
# =============================================================================

class ConnectionManager:
    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        logger.debug("WebSocket connected")

    def disconnect(self, websocket: WebSocket):
        logger.debug("WebSocket disconnected")

    async def send_personal_message(self, message: Dict[str, Any], websocket: WebSocket):
        await websocket.send_text(json.dumps(message))


connections = ConnectionManager()


def handle_message(message: Dict[str, Any]) -> Dict[str, Any]:
    """
    Answer one WebSocket message. Every reply carries a "type"; problems are
    reported as {"type": "error"} rather than closing the socket.
    """
    message_type = message.get("type")
    notebook_id = message.get("notebook_id")

    if message_type == "highlight":
        return {"type": "highlight_result", "highlights": highlighter.highlight_text(message.get("text", ""))}

    if message_type not in ("reprocess", "preview", "commit"):
        return {"type": "error", "error": f"Unknown message type: {message_type}"}

    if manager.get_notebook(notebook_id) is None:
        return {"type": "error", "error": f"Notebook not found: {notebook_id}"}

    content = message.get("content", "")
    cursor = message.get("cursor")

    if message_type == "reprocess":
        outcome = manager.update_content(notebook_id, content)
        preview = manager.preview(notebook_id, outcome.updated_text, cursor) if cursor is not None else None
        return {"type": "reprocess_result", "notebook_id": notebook_id, **_reprocess_payload(outcome, preview)}

    if cursor is None:
        return {"type": "error", "error": f"{message_type} requires a cursor offset"}

    if message_type == "preview":
        preview = manager.preview(notebook_id, content, cursor)
        return {"type": "preview_result", "notebook_id": notebook_id,
                "preview": preview.to_dict() if preview else None}

    outcome = manager.commit(notebook_id, content, cursor)
    return {"type": "commit_result", "notebook_id": notebook_id, **_commit_payload(outcome, content, cursor)}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for keystroke-rate evaluation.
    """
    await connections.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except ValueError:
                await connections.send_personal_message({"type": "error", "error": "Invalid JSON"}, websocket)
                continue
            if not isinstance(message, dict):
                await connections.send_personal_message({"type": "error", "error": "Expected a JSON object"}, websocket)
                continue

            await connections.send_personal_message(handle_message(message), websocket)

    except WebSocketDisconnect:
        connections.disconnect(websocket)


# =============================================================================
# SERVER STARTUP
# =============================================================================

def main():
    import uvicorn

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info("Starting calcnotes API Server at http://%s:%d", settings.HOST, settings.PORT)
    logger.info("API documentation at http://%s:%d/docs", settings.HOST, settings.PORT)

    uvicorn.run(
        "calcnotes.api_server:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL
    )


if __name__ == "__main__":
    main()
