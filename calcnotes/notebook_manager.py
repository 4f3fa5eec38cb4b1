"""
calcnotes Notebook Manager - Tab/Window Management
Holds the open notebooks, gives each one its own expression engine, and saves
and loads them as JSON.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import (
    DEFAULT_NOTEBOOK_NAME, DEFAULT_POSITION, DEFAULT_SIZE, DEFAULT_VIEW_MODE,
    VIEW_MODES, WINDOW_CASCADE_STEP,
)
from .editor import CommitResult, Preview, commit, preview
from .engine import NotebookEngine, ReprocessResult

logger = logging.getLogger(__name__)


class NotebookManager:
    """
    Manages notebooks, their engines and file persistence.

    When storage_path is set every change is written back to that file.
    """

    def __init__(self, storage_path: Optional[str] = None):
        self.notebooks: Dict[str, Dict[str, Any]] = {}
        self.engines: Dict[str, NotebookEngine] = {}
        self.view_mode = DEFAULT_VIEW_MODE
        self.storage_path = storage_path or None

    # =========================================================================
    # NOTEBOOK LIFECYCLE
    # =========================================================================

    def create_notebook(self, name: str = None, content: str = "") -> str:
        """
        Create a new notebook.

        Args:
            name (str): Name of the notebook, "Note N" when omitted
            content (str): Initial text

        Returns:
            str: ID of the created notebook
        """
        count = len(self.notebooks)
        notebook_id = f"note-{uuid.uuid4().hex[:12]}"

        if name is None:
            name = DEFAULT_NOTEBOOK_NAME.format(number=count + 1)

        offset = count * WINDOW_CASCADE_STEP
        self.notebooks[notebook_id] = {
            "id": notebook_id,
            "name": name,
            "content": content,
            "position": {"x": DEFAULT_POSITION["x"] + offset, "y": DEFAULT_POSITION["y"] + offset},
            "size": dict(DEFAULT_SIZE),
        }
        self.engines[notebook_id] = NotebookEngine()
        if content:
            self.update_content(notebook_id, content, save=False)

        logger.info("Created notebook %s (%s)", notebook_id, name)
        self._autosave()
        return notebook_id

    def delete_notebook(self, notebook_id: str) -> bool:
        """
        Delete a notebook. Deleting the last one leaves a fresh empty notebook
        in its place.

        Returns:
            bool: True if deleted successfully
        """
        if notebook_id not in self.notebooks:
            return False

        del self.notebooks[notebook_id]
        engine = self.engines.pop(notebook_id)
        engine.reset()
        logger.info("Deleted notebook %s", notebook_id)

        if not self.notebooks:
            self.create_notebook()
        else:
            self._autosave()
        return True

    def rename_notebook(self, notebook_id: str, new_name: str) -> bool:
        return self._set_field(notebook_id, "name", new_name)

    def move_notebook(self, notebook_id: str, x: int, y: int) -> bool:
        return self._set_field(notebook_id, "position", {"x": x, "y": y})

    def resize_notebook(self, notebook_id: str, width: int, height: int) -> bool:
        return self._set_field(notebook_id, "size", {"width": width, "height": height})

    def _set_field(self, notebook_id, field, value):
        if notebook_id not in self.notebooks:
            return False
        self.notebooks[notebook_id][field] = value
        self._autosave()
        return True

    def get_notebook(self, notebook_id: str) -> Optional[Dict[str, Any]]:
        return self.notebooks.get(notebook_id)

    def get_engine(self, notebook_id: str) -> Optional[NotebookEngine]:
        return self.engines.get(notebook_id)

    def list_notebooks(self) -> List[Dict[str, Any]]:
        """All notebooks in creation order."""
        return list(self.notebooks.values())

    def set_view_mode(self, view_mode: str) -> bool:
        if view_mode not in VIEW_MODES:
            return False
        self.view_mode = view_mode
        self._autosave()
        return True

    # =========================================================================
    # CONTENT AND EVALUATION
    # =========================================================================

    def update_content(self, notebook_id: str, content: str, save: bool = True) -> Optional[ReprocessResult]:
        """
        Store new text for a notebook and re-evaluate it.

        The stored content is the engine's updated text, so recomputed
        "expr = result" lines are what gets persisted.

        Returns:
            ReprocessResult: The pass outcome, or None if the notebook is unknown
        """
        notebook = self.notebooks.get(notebook_id)
        if notebook is None:
            return None

        outcome = self.engines[notebook_id].reprocess(content)
        notebook["content"] = outcome.updated_text
        if save:
            self._autosave()
        return outcome

    def preview(self, notebook_id: str, content: str, cursor: int) -> Optional[Preview]:
        engine = self.engines.get(notebook_id)
        if engine is None:
            return None
        return preview(engine, content, cursor)

    def commit(self, notebook_id: str, content: str, cursor: int) -> Optional[CommitResult]:
        """
        Commit the caret line of a notebook (Enter key).

        Returns:
            CommitResult: The committed outcome, or None if the notebook is
            unknown or the line does not commit
        """
        engine = self.engines.get(notebook_id)
        if engine is None:
            return None

        outcome = commit(engine, content, cursor)
        if outcome is not None:
            self.notebooks[notebook_id]["content"] = outcome.text
            self._autosave()
        return outcome

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view_mode": self.view_mode,
            "notebooks": [dict(notebook) for notebook in self.notebooks.values()],
        }

    def save_to_file(self, file_path: str) -> bool:
        """
        Save all notebooks to a file.

        Args:
            file_path (str): Path to save the file

        Returns:
            bool: True if saved successfully
        """
        try:
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)
            return True
        except OSError as e:
            logger.error("Error saving notebooks to %s: %s", file_path, e)
            return False

    def load_from_file(self, file_path: str) -> bool:
        """
        Load notebooks from a file, replacing the current ones.

        Every loaded notebook is reprocessed so its engine is ready for
        previews and commits. A malformed file leaves the current notebooks
        untouched.

        Returns:
            bool: True if loaded successfully
        """
        if not os.path.exists(file_path):
            return False

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            notebooks, engines = self._build_notebooks(data["notebooks"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Error loading notebooks from %s: %s", file_path, e)
            return False

        self.notebooks = notebooks
        self.engines = engines
        view_mode = data.get("view_mode", DEFAULT_VIEW_MODE)
        self.view_mode = view_mode if view_mode in VIEW_MODES else DEFAULT_VIEW_MODE

        logger.info("Loaded %d notebooks from %s", len(self.notebooks), file_path)
        if not self.notebooks:
            self.create_notebook()
        return True

    @staticmethod
    def _build_notebooks(entries):
        """Validate saved entries and return (notebooks, engines); raises TypeError."""
        if not isinstance(entries, list):
            raise TypeError("'notebooks' must be a list")

        notebooks: Dict[str, Dict[str, Any]] = {}
        engines: Dict[str, NotebookEngine] = {}
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise TypeError(f"notebook entry {index} is not an object")
            content = entry.get("content", "")
            if not isinstance(content, str):
                raise TypeError(f"notebook entry {index} has non-text content")

            notebook_id = entry.get("id") or f"note-{uuid.uuid4().hex[:12]}"
            offset = index * WINDOW_CASCADE_STEP
            engine = NotebookEngine()
            notebooks[notebook_id] = {
                "id": notebook_id,
                "name": entry.get("name") or DEFAULT_NOTEBOOK_NAME.format(number=index + 1),
                "content": engine.reprocess(content).updated_text,
                "position": entry.get("position") or {"x": DEFAULT_POSITION["x"] + offset,
                                                      "y": DEFAULT_POSITION["y"] + offset},
                "size": entry.get("size") or dict(DEFAULT_SIZE),
            }
            engines[notebook_id] = engine
        return notebooks, engines

    def export_notebook(self, notebook_id: str, file_path: str) -> bool:
        """
        Export a single notebook, as JSON when the path ends in .json and as
        plain text otherwise.

        Returns:
            bool: True if exported successfully
        """
        notebook = self.get_notebook(notebook_id)
        if not notebook:
            return False

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                if file_path.endswith('.json'):
                    json.dump({"name": notebook["name"], "content": notebook["content"]}, f, indent=2)
                else:
                    f.write(notebook["content"])
            return True
        except OSError as e:
            logger.error("Error exporting notebook %s: %s", notebook_id, e)
            return False

    def import_notebook(self, file_path: str, name: str = None) -> Optional[str]:
        """
        Import a notebook from a .json export or a plain text file.

        Returns:
            str: ID of the imported notebook or None if failed
        """
        if not os.path.exists(file_path):
            return None

        try:
            if file_path.endswith('.json'):
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                content = data.get("content", "")
                if name is None:
                    name = data.get("name", Path(file_path).stem)
            else:
                with open(file_path, 'r', encoding='utf-8') as f:
                    content = f.read()
                if name is None:
                    name = Path(file_path).stem
        except (OSError, ValueError, AttributeError) as e:
            logger.error("Error importing notebook from %s: %s", file_path, e)
            return None

        return self.create_notebook(name, content)

    def _autosave(self):
        if self.storage_path:
            self.save_to_file(self.storage_path)
