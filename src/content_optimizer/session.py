"""
Optimizer Session - the application state machine.

    TOPIC_INPUT -> GENERATING_TITLES -> TITLES_DISPLAYED -> THUMBNAIL_WORKSPACE

Every mutation happens in a named method. Generation calls run one at a
time (``busy``); improvement suggestions are fetched in a background task
that never blocks other actions and whose result is dropped if the active
thumbnail changed while it was running.

Expected failures never raise: the method returns False and the message is
kept in ``error`` until the next action. Calling an action in the wrong
state or while busy raises InvalidTransitionError / SessionBusyError.
"""

import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .errors import (
    GenerationError,
    InputValidationError,
    InvalidTransitionError,
    SessionBusyError,
)
from .history import ThumbnailHistory
from .models import ImageBlob, Language
from .workspace import DEFAULT_STYLE_STRENGTH, ThumbnailWorkspace, save_thumbnail


class AppState(str, Enum):
    TOPIC_INPUT = "topic_input"
    GENERATING_TITLES = "generating_titles"
    TITLES_DISPLAYED = "titles_displayed"
    THUMBNAIL_WORKSPACE = "thumbnail_workspace"


class BusyState(str, Enum):
    NONE = "none"
    TITLES = "titles"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    EDITING = "editing"


LOADING_MESSAGES = {
    BusyState.TITLES: "Generating titles...",
    BusyState.ANALYZING: "Analyzing design aesthetics...",
    BusyState.GENERATING: "Crafting your new thumbnail...",
    BusyState.EDITING: "Applying your creative edits...",
}
SUGGESTING_MESSAGE = "Getting improvement ideas..."


class Session:

    def __init__(
        self,
        client,
        language: Language = Language.EN,
        style_strength: int = DEFAULT_STYLE_STRENGTH,
        output_dir: Optional[Path] = None,
    ):
        self.client = client
        self.default_language = Language(language)
        self.default_style_strength = style_strength
        self.output_dir = Path(output_dir) if output_dir else Path("data/output")
        self._epoch = 0
        self.reset()

    def reset(self) -> None:
        """Clear every field and return to topic entry."""
        self._epoch += 1
        self.state = AppState.TOPIC_INPUT
        self.topic = ""
        self.language = self.default_language
        self.titles: List[str] = []
        self.selected_title: Optional[str] = None
        self.error: Optional[str] = None
        self.busy = BusyState.NONE
        self._clear_workspace()

    start_over = reset

    def _clear_workspace(self) -> None:
        self.workspace: Optional[ThumbnailWorkspace] = None
        self.history = ThumbnailHistory()
        self.suggestions: List[str] = []
        self.edit_instruction = ""
        self._suggestion_task: Optional[asyncio.Task] = None

    # ── Guards ───────────────────────────────────────────────────────

    def _require_state(self, *states: AppState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransitionError(
                f"Action not available in state '{self.state.value}' (needs: {allowed})"
            )

    def _require_idle(self) -> None:
        if self.busy is not BusyState.NONE:
            raise SessionBusyError(f"Another request is in progress ({self.busy.value})")

    def _record_failure(self, exc: Exception, fallback: str) -> None:
        print(f"  ERROR: {fallback} {type(exc).__name__}: {str(exc)[:150]}", file=sys.stderr)
        self.error = str(exc) if isinstance(exc, GenerationError) else fallback

    # ── Properties ───────────────────────────────────────────────────

    @property
    def active_thumbnail(self) -> Optional[ImageBlob]:
        entry = self.history.current
        return entry.image if entry else None

    @property
    def suggesting(self) -> bool:
        return self._suggestion_task is not None

    @property
    def progress_message(self) -> Optional[str]:
        if self.busy is not BusyState.NONE:
            return LOADING_MESSAGES[self.busy]
        return SUGGESTING_MESSAGE if self.suggesting else None

    # ── Titles ───────────────────────────────────────────────────────

    async def generate_titles(self, topic: str, language: Optional[str] = None) -> bool:
        self._require_state(AppState.TOPIC_INPUT, AppState.TITLES_DISPLAYED)
        self._require_idle()
        self.error = None

        topic = (topic or "").strip()
        if not topic:
            self.error = "Please enter a topic."
            return False
        try:
            lang = Language(language) if language else self.language
        except ValueError:
            self.error = f"Unsupported language '{language}'."
            return False

        self.topic = topic
        self.language = lang
        self.state = AppState.GENERATING_TITLES
        self.busy = BusyState.TITLES
        epoch = self._epoch
        try:
            titles = await self.client.generate_titles(topic, lang)
        except Exception as e:
            if epoch == self._epoch:
                self.busy = BusyState.NONE
                self.titles = []
                self.state = AppState.TOPIC_INPUT
                self._record_failure(e, "Failed to generate titles. Please try again.")
            return False

        if epoch != self._epoch:
            return False
        self.busy = BusyState.NONE
        self.titles = list(titles)
        self.state = AppState.TITLES_DISPLAYED
        return True

    def copy_title(self, index: int) -> Optional[str]:
        """Literal text of a generated title (what the clipboard would receive)."""
        self.error = None
        if not 0 <= index < len(self.titles):
            self.error = f"No title at index {index}."
            return None
        return self.titles[index]

    def select_title(self, choice: Union[int, str]) -> bool:
        """Enter the thumbnail workspace for a title (by index or text), starting fresh."""
        self._require_state(AppState.TITLES_DISPLAYED)
        self.error = None
        if isinstance(choice, int):
            if not 0 <= choice < len(self.titles):
                self.error = f"No title at index {choice}."
                return False
            title = self.titles[choice]
        else:
            title = (choice or "").strip()
            if not title:
                self.error = "Please choose a title."
                return False

        self._epoch += 1
        self._clear_workspace()
        self.workspace = ThumbnailWorkspace(self.default_style_strength)
        self.selected_title = title
        self.state = AppState.THUMBNAIL_WORKSPACE
        return True

    def back_to_titles(self) -> None:
        """Leave the workspace; its uploads and history are discarded."""
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self._epoch += 1
        self.error = None
        self.busy = BusyState.NONE
        self._clear_workspace()
        self.selected_title = None
        self.state = AppState.TITLES_DISPLAYED

    # ── Workspace inputs ─────────────────────────────────────────────

    def _edit_workspace(self, action) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self.error = None
        try:
            action()
        except InputValidationError as e:
            self.error = str(e)
            return False
        except OSError as e:
            self.error = f"Could not read image file: {e}"
            return False
        return True

    def set_num_subjects(self, count: int) -> bool:
        return self._edit_workspace(lambda: self.workspace.set_num_subjects(count))

    def set_layout(self, layout: str) -> bool:
        return self._edit_workspace(lambda: self.workspace.set_layout(layout))

    def set_style_strength(self, strength: int) -> bool:
        return self._edit_workspace(lambda: self.workspace.set_style_strength(strength))

    def upload_subject(self, slot: int, path: Path) -> bool:
        return self._edit_workspace(lambda: self.workspace.set_subject(slot, Path(path)))

    def add_backgrounds(self, paths: List[Path]) -> bool:
        return self._edit_workspace(lambda: self.workspace.add_backgrounds([Path(p) for p in paths]))

    def remove_background(self, index: int) -> bool:
        return self._edit_workspace(lambda: self.workspace.remove_background(index))

    def add_references(self, paths: List[Path]) -> bool:
        return self._edit_workspace(lambda: self.workspace.add_references([Path(p) for p in paths]))

    def remove_reference(self, index: int) -> bool:
        return self._edit_workspace(lambda: self.workspace.remove_reference(index))

    # ── Style analysis ───────────────────────────────────────────────

    async def _run_analysis(self, ws: ThumbnailWorkspace) -> str:
        refs = list(ws.references)
        style = await self.client.analyze_style([r.blob for r in refs])
        # Cache only if the reference set is still the one analyzed.
        if ws.references == refs:
            ws.analyzed_style = style
        return style

    async def analyze_style(self) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self._require_idle()
        self.error = None
        ws = self.workspace
        if not ws.references:
            self.error = "Please upload at least one style reference."
            return False

        self.busy = BusyState.ANALYZING
        epoch = self._epoch
        try:
            await self._run_analysis(ws)
        except Exception as e:
            if epoch == self._epoch:
                self._record_failure(e, "Failed to analyze style references.")
            return False
        finally:
            if epoch == self._epoch:
                self.busy = BusyState.NONE
        return epoch == self._epoch

    # ── Thumbnails ───────────────────────────────────────────────────

    async def generate_thumbnail(self) -> bool:
        """
        Generate a thumbnail from the workspace and append it to history.

        Style references are analyzed first when no analysis is cached.
        """
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self._require_idle()
        self.error = None
        ws = self.workspace
        try:
            ws.validate_subjects()
        except InputValidationError as e:
            self.error = str(e)
            return False

        epoch = self._epoch
        try:
            style = ws.analyzed_style
            if ws.needs_style_analysis:
                self.busy = BusyState.ANALYZING
                style = await self._run_analysis(ws)
            self.busy = BusyState.GENERATING
            subject1, subject2 = ws.subject_blobs
            image = await self.client.generate_thumbnail(
                self.selected_title,
                self.language,
                ws.num_subjects,
                subject1,
                subject2,
                ws.background_blobs,
                ws.layout,
                style,
                ws.style_strength,
            )
        except Exception as e:
            if epoch == self._epoch:
                self._record_failure(e, "Failed to generate thumbnail.")
            return False
        finally:
            if epoch == self._epoch:
                self.busy = BusyState.NONE

        if epoch != self._epoch:
            return False
        self.history.push(image)
        self.suggestions = []
        self._on_active_changed()
        return True

    async def apply_edit(self, instruction: Optional[str] = None) -> bool:
        """Apply the typed edit instruction. The text is kept if the edit fails."""
        if instruction is not None:
            self.edit_instruction = instruction
        return await self._edit(self.edit_instruction, manual=True)

    async def apply_suggestion(self, choice: Union[int, str]) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self._require_idle()
        self.error = None
        if isinstance(choice, int):
            if not 0 <= choice < len(self.suggestions):
                self.error = f"No suggestion at index {choice}."
                return False
            choice = self.suggestions[choice]
        return await self._edit(choice, manual=False)

    async def _edit(self, instruction: str, manual: bool) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self._require_idle()
        self.error = None
        entry = self.history.current
        if entry is None:
            self.error = "Generate a thumbnail before editing."
            return False
        if not (instruction or "").strip():
            self.error = "Please enter an edit instruction."
            return False

        self.busy = BusyState.EDITING
        epoch = self._epoch
        try:
            image = await self.client.edit_thumbnail(entry.image, instruction, self.language)
        except Exception as e:
            if epoch == self._epoch:
                self._record_failure(e, "Failed to apply the edit.")
            return False
        finally:
            if epoch == self._epoch:
                self.busy = BusyState.NONE

        if epoch != self._epoch:
            return False
        self.history.push(image, instruction)
        if manual:
            self.edit_instruction = ""
        self.suggestions = []
        self._on_active_changed()
        return True

    def undo(self) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self.error = None
        moved = self.history.undo()
        if moved:
            self._on_active_changed()
        return moved

    def redo(self) -> bool:
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self.error = None
        moved = self.history.redo()
        if moved:
            self._on_active_changed()
        return moved

    def download(self, output_dir: Optional[Path] = None) -> Optional[Path]:
        """Save the active thumbnail as a PNG named after the title. None on failure."""
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self.error = None
        image = self.active_thumbnail
        if image is None:
            self.error = "No thumbnail to download yet."
            return None
        try:
            return save_thumbnail(image, self.selected_title, output_dir or self.output_dir)
        except OSError as e:
            self._record_failure(e, f"Could not save thumbnail: {e}")
            return None

    # ── Suggestions ──────────────────────────────────────────────────

    def _on_active_changed(self) -> None:
        entry = self.history.current
        if entry is None or self.suggestions or self._suggestion_task is not None:
            return
        self._launch_suggestions(entry.id)

    def _launch_suggestions(self, entry_id: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to run the fetch on.
            return
        self._suggestion_task = loop.create_task(
            self._fetch_suggestions(entry_id, self.selected_title, self.language)
        )

    async def _fetch_suggestions(self, entry_id: int, title: str, language: Language) -> None:
        suggestions = None
        try:
            suggestions = await self.client.get_suggestions(title, language)
        except Exception as e:
            print(f"  WARNING: Failed to get suggestions: {str(e)[:150]}", file=sys.stderr)
        finally:
            if self._suggestion_task is asyncio.current_task():
                self._suggestion_task = None

        entry = self.history.current
        if entry is None or entry.id != entry_id:
            # Active thumbnail moved on while fetching: drop the result.
            self._on_active_changed()
            return
        if suggestions is not None:
            self.suggestions = list(suggestions)

    async def refresh_suggestions(self) -> List[str]:
        """Fetch new suggestions for the active thumbnail (joins an in-flight fetch)."""
        self._require_state(AppState.THUMBNAIL_WORKSPACE)
        self.error = None
        entry = self.history.current
        if entry is None:
            self.error = "Generate a thumbnail first."
            return []
        if self._suggestion_task is None:
            self._launch_suggestions(entry.id)
        await self.wait_for_suggestions()
        return self.suggestions

    async def wait_for_suggestions(self) -> None:
        while self._suggestion_task is not None:
            await self._suggestion_task

    # ── Reporting ────────────────────────────────────────────────────

    def status(self) -> dict:
        entry = self.history.current
        return {
            "state": self.state.value,
            "busy": self.busy.value,
            "progress": self.progress_message,
            "error": self.error,
            "topic": self.topic,
            "language": self.language.value,
            "titles": self.titles,
            "selected_title": self.selected_title,
            "workspace": self.workspace.status() if self.workspace else None,
            "history": {
                "length": len(self.history),
                "index": self.history.index,
                "can_undo": self.history.can_undo,
                "can_redo": self.history.can_redo,
                "active_instruction": entry.instruction if entry else None,
            },
            "suggestions": self.suggestions,
            "suggesting": self.suggesting,
            "edit_instruction": self.edit_instruction,
        }
