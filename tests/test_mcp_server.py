"""
MCP tool handler tests, driven end to end with the fake generation client.
"""
import json

import pytest

import mcp_server
from src.content_optimizer.errors import InvalidTransitionError
from src.content_optimizer.session import Session


@pytest.fixture
def session(fake_client, tmp_path):
    session = Session(fake_client, output_dir=tmp_path / "out")
    mcp_server.set_session(session)
    yield session
    mcp_server.set_session(None)


def call(run, name, **args):
    return run(mcp_server._handle_tool(name, args))


def test_full_flow(session, image_file, tmp_path, run):
    async def scenario():
        out = {}
        out["titles"] = await mcp_server._handle_tool(
            "generate_titles", {"topic": "How to learn React in 2024", "language": "en"}
        )
        out["select"] = await mcp_server._handle_tool("select_title", {"index": 1})
        out["upload"] = await mcp_server._handle_tool("upload_subject", {"path": str(image_file())})
        out["generate"] = await mcp_server._handle_tool("generate_thumbnail", {})
        out["suggestions"] = await mcp_server._handle_tool("get_suggestions", {})
        out["edit"] = await mcp_server._handle_tool("edit_thumbnail", {"instruction": "make the text yellow"})
        out["undo"] = await mcp_server._handle_tool("undo", {})
        out["download"] = await mcp_server._handle_tool("download_thumbnail", {})
        await session.wait_for_suggestions()
        return out

    out = run(scenario())

    assert out["titles"].startswith("Generated 20 titles")
    assert "Title number 1" in out["select"]
    assert out["upload"].startswith("Subject 1 uploaded")
    assert "History: 1/1" in out["generate"]
    assert "Add a glowing outline" in out["suggestions"]
    assert "History: 2/2" in out["edit"]
    assert out["undo"].startswith("Undone. History: 1/2")
    assert str(tmp_path / "out") in out["download"]


def test_status_is_json(session, run):
    status = json.loads(call(run, "session_status"))
    assert status["state"] == "topic_input"


def test_validation_errors_are_reported(session, run):
    assert call(run, "generate_titles", topic="  ") == "ERROR: Please enter a topic."


def test_configure_workspace(session, run):
    call(run, "generate_titles", topic="Cooking")
    call(run, "select_title", index=0)

    result = call(run, "configure_workspace", num_subjects=2, layout="Versus/Comparison", style_strength=50)

    assert result == "Workspace updated: faces=2, layout=Versus/Comparison, style_strength=50%"
    assert call(run, "configure_workspace", style_strength=5).startswith("ERROR: Style strength")


def test_style_reference_note_only_when_references_change(session, image_file, run):
    call(run, "generate_titles", topic="Cooking")
    call(run, "select_title", index=0)
    paths = [str(image_file()) for _ in range(3)]

    added = call(run, "add_style_references", paths=paths)
    overflow = call(run, "add_style_references", paths=[str(image_file())])

    assert added == "Style references: 3/3 (style will be re-analyzed)"
    assert overflow == "Style references: 3/3"


def test_download_without_thumbnail_is_an_error(session, run):
    call(run, "generate_titles", topic="Cooking")
    call(run, "select_title", index=0)

    assert call(run, "download_thumbnail") == "ERROR: No thumbnail to download yet."


def test_copy_title(session, fake_client, run):
    call(run, "generate_titles", topic="Cooking")
    assert call(run, "copy_title", index=4) == fake_client.titles[4]


def test_wrong_state_raises_from_handler(session, run):
    with pytest.raises(InvalidTransitionError):
        call(run, "generate_thumbnail")


def test_unknown_tool(session, run):
    assert call(run, "publish_video") == "ERROR: Unknown tool 'publish_video'"
