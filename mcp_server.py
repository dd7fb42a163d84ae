#!/usr/bin/env python3
"""
YouTube Content Optimizer - MCP Server for Claude Desktop
=========================================================
Model Context Protocol server that exposes the title + thumbnail session
as MCP tools. One session lives for the lifetime of the server.

Tools:
  - session_status: Current step, titles, workspace, history and suggestions
  - generate_titles: 20 title ideas for a topic (en / ar)
  - copy_title: Literal text of one generated title
  - select_title: Pick a title and open the thumbnail workspace
  - back_to_titles: Leave the workspace (uploads and history are discarded)
  - start_over: Reset everything

  Thumbnail workspace:
  - configure_workspace: Number of faces, layout preset, style strength
  - upload_subject: Subject photo 1 or 2 (PNG/JPG, max 4MB)
  - add_background_images / remove_background_image: Context images (max 5)
  - add_style_references / remove_style_reference: Style examples (max 3)
  - analyze_style: Describe the style of the references
  - generate_thumbnail: Generate a 1280x720 thumbnail
  - edit_thumbnail: Apply a free-text edit to the active thumbnail
  - apply_suggestion: Apply one of the improvement suggestions
  - get_suggestions: Fetch (or wait for) improvement suggestions
  - undo / redo: Move through the thumbnail history
  - download_thumbnail: Save the active thumbnail as PNG

Run: python mcp_server.py
"""

import json
from pathlib import Path
from typing import Any

# MCP SDK imports
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from src.content_optimizer.client import GenerationClient
from src.content_optimizer.config import load_config, resolve_output_dir
from src.content_optimizer.models import LayoutPreset
from src.content_optimizer.session import Session

# Paths
BASE_DIR = Path(__file__).parent

_session: Session | None = None


def get_session() -> Session:
    """Create the server-wide session on first use."""
    global _session
    if _session is None:
        config = load_config()
        _session = Session(
            GenerationClient(),
            language=config["language"],
            style_strength=config["style_strength"],
            output_dir=resolve_output_dir(config),
        )
    return _session


def set_session(session: Session | None) -> None:
    global _session
    _session = session


# ─── Helpers ───────────────────────────────────────────────────────────

def outcome(session: Session, ok: bool, success: str) -> str:
    """Tool result text: the success message, or the session error."""
    if ok:
        return success
    return f"ERROR: {session.error}"


def format_list(items: list[str]) -> str:
    return "\n".join(f"  [{i}] {item}" for i, item in enumerate(items))


def history_line(session: Session) -> str:
    h = session.history
    return (
        f"History: {h.index + 1}/{len(h)} "
        f"(undo: {'yes' if h.can_undo else 'no'}, redo: {'yes' if h.can_redo else 'no'})"
    )


def path_list(args: dict[str, Any]) -> list[Path]:
    return [Path(p) for p in args.get("paths", [])]


# ─── MCP Server ───────────────────────────────────────────────────────

app = Server("youtube-content-optimizer")

NO_ARGS = {"type": "object", "properties": {}, "required": []}
INDEX_ARG = {
    "type": "object",
    "properties": {"index": {"type": "integer", "description": "0-based index"}},
    "required": ["index"],
}
PATHS_ARG = {
    "type": "object",
    "properties": {
        "paths": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Local image file paths (PNG or JPG)",
        }
    },
    "required": ["paths"],
}


@app.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="session_status",
            description=(
                "Show the current session: step (topic_input, titles_displayed, "
                "thumbnail_workspace), titles, workspace uploads, history and suggestions. "
                "CALL THIS FIRST to understand where the user is."
            ),
            inputSchema=NO_ARGS,
        ),
        Tool(
            name="generate_titles",
            description=(
                "Generate 20 click-worthy YouTube titles (under 70 characters) for a topic "
                "with Gemini. Language 'en' (English) or 'ar' (Arabic, MENA audience)."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "description": "Video topic"},
                    "language": {"type": "string", "enum": ["en", "ar"], "default": "en"},
                },
                "required": ["topic"],
            },
        ),
        Tool(
            name="copy_title",
            description="Return the exact text of one generated title.",
            inputSchema=INDEX_ARG,
        ),
        Tool(
            name="select_title",
            description=(
                "Choose a title (by index into the generated list, or custom text) and "
                "open a fresh thumbnail workspace for it."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "index": {"type": "integer", "description": "0-based index of a generated title"},
                    "title": {"type": "string", "description": "Title text (used if index is omitted)"},
                },
                "required": [],
            },
        ),
        Tool(
            name="back_to_titles",
            description="Return to the title list. Thumbnail uploads and history are discarded.",
            inputSchema=NO_ARGS,
        ),
        Tool(
            name="start_over",
            description="Reset the whole session back to topic entry.",
            inputSchema=NO_ARGS,
        ),
        Tool(
            name="configure_workspace",
            description=(
                "Set number of faces (1 or 2), layout preset and style strength (10-100). "
                "Only the provided fields change."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "num_subjects": {"type": "integer", "enum": [1, 2]},
                    "layout": {"type": "string", "enum": [p.value for p in LayoutPreset]},
                    "style_strength": {"type": "integer", "minimum": 10, "maximum": 100},
                },
                "required": [],
            },
        ),
        Tool(
            name="upload_subject",
            description=(
                "Upload the photo of subject 1 or 2 (PNG or JPG, up to 4MB). Faces are "
                "never altered in the generated thumbnail."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "slot": {"type": "integer", "enum": [1, 2], "default": 1},
                    "path": {"type": "string", "description": "Local image file path"},
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="add_background_images",
            description="Add background/context images (max 5 in total; extras are ignored).",
            inputSchema=PATHS_ARG,
        ),
        Tool(
            name="remove_background_image",
            description="Remove a background/context image by index.",
            inputSchema=INDEX_ARG,
        ),
        Tool(
            name="add_style_references",
            description=(
                "Add example thumbnails whose style should be imitated (max 3 in total). "
                "Changing references discards any previous style analysis."
            ),
            inputSchema=PATHS_ARG,
        ),
        Tool(
            name="remove_style_reference",
            description="Remove a style reference by index (discards the style analysis).",
            inputSchema=INDEX_ARG,
        ),
        Tool(
            name="analyze_style",
            description=(
                "Analyze the style references (palette, typography, composition, effects). "
                "Optional: generate_thumbnail analyzes them automatically when needed."
            ),
            inputSchema=NO_ARGS,
        ),
        Tool(
            name="generate_thumbnail",
            description=(
                "Generate a complete 1280x720 thumbnail for the selected title using the "
                "uploaded subjects, backgrounds, layout and style. Requires subject photos. "
                "Improvement suggestions are fetched in the background afterwards."
            ),
            inputSchema=NO_ARGS,
        ),
        Tool(
            name="edit_thumbnail",
            description=(
                "Edit the active thumbnail with a free-text instruction, e.g. "
                "'make the text yellow'. Faces are preserved."
            ),
            inputSchema={
                "type": "object",
                "properties": {"instruction": {"type": "string"}},
                "required": ["instruction"],
            },
        ),
        Tool(
            name="apply_suggestion",
            description="Apply one of the current improvement suggestions as an edit.",
            inputSchema=INDEX_ARG,
        ),
        Tool(
            name="get_suggestions",
            description=(
                "Return improvement suggestions for the active thumbnail. Waits for the "
                "background fetch, or starts a new one when refresh=true."
            ),
            inputSchema={
                "type": "object",
                "properties": {"refresh": {"type": "boolean", "default": False}},
                "required": [],
            },
        ),
        Tool(name="undo", description="Go back to the previous thumbnail.", inputSchema=NO_ARGS),
        Tool(name="redo", description="Go forward to the next thumbnail.", inputSchema=NO_ARGS),
        Tool(
            name="download_thumbnail",
            description="Save the active thumbnail as PNG (default: data/output/).",
            inputSchema={
                "type": "object",
                "properties": {"output_dir": {"type": "string"}},
                "required": [],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    try:
        result = await _handle_tool(name, arguments or {})
        return [TextContent(type="text", text=result)]
    except Exception as e:
        return [TextContent(type="text", text=f"ERROR: {str(e)}")]


async def _handle_tool(name: str, args: dict[str, Any]) -> str:
    session = get_session()

    # ── session_status ────────────────────────────────────────────
    if name == "session_status":
        return json.dumps(session.status(), indent=2, ensure_ascii=False)

    # ── generate_titles ───────────────────────────────────────────
    elif name == "generate_titles":
        ok = await session.generate_titles(args.get("topic", ""), args.get("language"))
        return outcome(
            session, ok,
            f"Generated {len(session.titles)} titles:\n{format_list(session.titles)}\n\n"
            f"Next: select_title with the chosen index.",
        )

    # ── copy_title ────────────────────────────────────────────────
    elif name == "copy_title":
        text = session.copy_title(int(args.get("index", 0)))
        return outcome(session, text is not None, text)

    # ── select_title ──────────────────────────────────────────────
    elif name == "select_title":
        choice = args["index"] if "index" in args else args.get("title", "")
        ok = session.select_title(choice)
        return outcome(
            session, ok,
            f"Selected title: \"{session.selected_title}\"\n\n"
            f"Next: upload_subject, then generate_thumbnail.",
        )

    # ── back_to_titles ────────────────────────────────────────────
    elif name == "back_to_titles":
        session.back_to_titles()
        return f"Back to titles:\n{format_list(session.titles)}"

    # ── start_over ────────────────────────────────────────────────
    elif name == "start_over":
        session.start_over()
        return "Session reset. Next: generate_titles with a new topic."

    # ── configure_workspace ───────────────────────────────────────
    elif name == "configure_workspace":
        changes = []
        if "num_subjects" in args:
            if not session.set_num_subjects(int(args["num_subjects"])):
                return f"ERROR: {session.error}"
            changes.append(f"faces={args['num_subjects']}")
        if "layout" in args:
            if not session.set_layout(args["layout"]):
                return f"ERROR: {session.error}"
            changes.append(f"layout={args['layout']}")
        if "style_strength" in args:
            if not session.set_style_strength(int(args["style_strength"])):
                return f"ERROR: {session.error}"
            changes.append(f"style_strength={args['style_strength']}%")
        if not changes:
            return "Nothing to change."
        return "Workspace updated: " + ", ".join(changes)

    # ── upload_subject ────────────────────────────────────────────
    elif name == "upload_subject":
        slot = int(args.get("slot", 1))
        path = args.get("path", "")
        if not path:
            return "ERROR: path is required"
        ok = session.upload_subject(slot, Path(path))
        return outcome(session, ok, f"Subject {slot} uploaded: {path}")

    # ── add_background_images ─────────────────────────────────────
    elif name == "add_background_images":
        ok = session.add_backgrounds(path_list(args))
        count = len(session.workspace.backgrounds) if session.workspace else 0
        return outcome(session, ok, f"Background images: {count}/5")

    # ── remove_background_image ───────────────────────────────────
    elif name == "remove_background_image":
        ok = session.remove_background(int(args.get("index", 0)))
        return outcome(session, ok, f"Background images: {len(session.workspace.backgrounds)}/5")

    # ── add_style_references ─────────────────────────────────────
    elif name == "add_style_references":
        before = len(session.workspace.references) if session.workspace else 0
        ok = session.add_references(path_list(args))
        count = len(session.workspace.references) if session.workspace else 0
        note = " (style will be re-analyzed)" if count > before else ""
        return outcome(session, ok, f"Style references: {count}/3{note}")

    # ── remove_style_reference ────────────────────────────────────
    elif name == "remove_style_reference":
        ok = session.remove_reference(int(args.get("index", 0)))
        return outcome(session, ok, f"Style references: {len(session.workspace.references)}/3")

    # ── analyze_style ─────────────────────────────────────────────
    elif name == "analyze_style":
        ok = await session.analyze_style()
        style = session.workspace.analyzed_style if session.workspace else None
        return outcome(session, ok, f"STYLE ANALYSIS:\n\n{style}")

    # ── generate_thumbnail ────────────────────────────────────────
    elif name == "generate_thumbnail":
        ok = await session.generate_thumbnail()
        return outcome(
            session, ok,
            f"Thumbnail generated!\n  {history_line(session)}\n\n"
            f"Next: get_suggestions, edit_thumbnail, or download_thumbnail.",
        )

    # ── edit_thumbnail ────────────────────────────────────────────
    elif name == "edit_thumbnail":
        ok = await session.apply_edit(args.get("instruction", ""))
        return outcome(session, ok, f"Edit applied!\n  {history_line(session)}")

    # ── apply_suggestion ──────────────────────────────────────────
    elif name == "apply_suggestion":
        ok = await session.apply_suggestion(int(args.get("index", 0)))
        return outcome(session, ok, f"Suggestion applied!\n  {history_line(session)}")

    # ── get_suggestions ───────────────────────────────────────────
    elif name == "get_suggestions":
        if args.get("refresh"):
            suggestions = await session.refresh_suggestions()
            if session.error:
                return f"ERROR: {session.error}"
        else:
            await session.wait_for_suggestions()
            suggestions = session.suggestions
        if not suggestions:
            return "No suggestions available right now. Try get_suggestions with refresh=true."
        return f"Suggestions:\n{format_list(suggestions)}\n\nNext: apply_suggestion with an index."

    # ── undo / redo ───────────────────────────────────────────────
    elif name == "undo":
        moved = session.undo()
        return ("Undone. " if moved else "Nothing to undo. ") + history_line(session)

    elif name == "redo":
        moved = session.redo()
        return ("Redone. " if moved else "Nothing to redo. ") + history_line(session)

    # ── download_thumbnail ────────────────────────────────────────
    elif name == "download_thumbnail":
        output_dir = Path(args["output_dir"]) if args.get("output_dir") else None
        dest = session.download(output_dir)
        return outcome(session, dest is not None, f"Thumbnail saved: {dest}\nReady for YouTube upload!")

    else:
        return f"ERROR: Unknown tool '{name}'"


# ─── Main ─────────────────────────────────────────────────────────────

async def main():
    from dotenv import load_dotenv
    load_dotenv(BASE_DIR / ".env")

    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
