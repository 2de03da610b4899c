"""Tests for the aiohttp front end."""

import asyncio
import json
import os
import sys

import aiohttp
from aiohttp import test_utils

# Add the src directory to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.config import AppConfig
from core.main import EDITOR_KEY, HISTORY_KEY, create_app
from core.storage import MemoryStorage, SqliteStorage
from save_parsing.save_codec import HollowKnightCodec


SAVE_TEXT = '{"playerData":{"geo":250,"SavedFlea_Bone_06":true},"sceneData":{}}'


def _upload(file_bytes, file_name="user1.dat", save_format=None):
    data = aiohttp.FormData()
    data.add_field("file", file_bytes, filename=file_name, content_type="application/octet-stream")
    if save_format:
        data.add_field("format", save_format)
    return data


def run_with_client(scenario, storage=None, cfg=None):
    """Run ``scenario(client, app)`` against a fresh app."""
    app = create_app(cfg or AppConfig(), storage or MemoryStorage())

    async def runner():
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            await scenario(client, app)

    asyncio.run(runner())


def test_health_check():
    async def scenario(client, app):
        for path in ("/", "/health"):
            resp = await client.get(path)
            assert resp.status == 200
            assert "is running" in await resp.text()

    run_with_client(scenario)


def test_decode_edit_export_cycle():
    save_bytes = HollowKnightCodec().encode(SAVE_TEXT)

    async def scenario(client, app):
        resp = await client.post("/decode", data=_upload(save_bytes))
        assert resp.status == 200
        state = await resp.json()
        assert state["fileName"] == "user1.dat"
        assert json.loads(state["jsonString"]) == json.loads(SAVE_TEXT)
        assert {"key": "SavedFlea_Bone_06", "value": "true"} in state["fleaFields"]

        resp = await client.put("/editor/flea", json={"key": "SavedFlea_Dock_16", "value": "true"})
        assert resp.status == 200
        assert json.loads((await resp.json())["jsonString"])["playerData"]["SavedFlea_Dock_16"] is True

        resp = await client.get("/export")
        assert resp.status == 200
        assert resp.headers["Content-Disposition"] == 'attachment; filename="user1.dat"'
        decoded = HollowKnightCodec().decode(await resp.read())
        assert json.loads(decoded)["playerData"]["SavedFlea_Dock_16"] is True

        resp = await client.get("/export", params={"format": "switch"})
        assert resp.status == 200
        assert json.loads(await resp.read())["playerData"]["geo"] == 250

    run_with_client(scenario)


def test_decode_switch_upload():
    async def scenario(client, app):
        resp = await client.post("/decode", data=_upload(SAVE_TEXT.encode("utf-8"), save_format="switch"))
        assert resp.status == 200
        assert app[EDITOR_KEY].file_name == "user1.dat"

    run_with_client(scenario)


def test_decode_failure_is_generic():
    async def scenario(client, app):
        resp = await client.post("/decode", data=_upload(b"\x00\x01garbage"))
        assert resp.status == 400
        assert await resp.json() == {"error": "The file could not be decrypted."}

        resp = await client.post("/decode", data={"notafile": "x"})
        assert resp.status == 400

        resp = await client.post("/decode", data=_upload(b"{}", save_format="ps4"))
        assert resp.status == 400

        data = _upload(b"{}")
        data.add_field("format", b"switch", filename="format.txt")
        resp = await client.post("/decode", data=data)
        assert resp.status == 400

    run_with_client(scenario)


def test_editing_requires_loaded_save():
    async def scenario(client, app):
        assert (await client.get("/export")).status == 409
        assert (await client.post("/editor/reset")).status == 409
        resp = await client.put("/editor/text", json={"jsonString": "{}"})
        assert resp.status == 409
        state = await (await client.get("/editor")).json()
        assert state["editing"] is False
        assert state["hash"] is None

    run_with_client(scenario)


def test_invalid_json_export_and_reset():
    save_bytes = HollowKnightCodec().encode(SAVE_TEXT)

    async def scenario(client, app):
        await client.post("/decode", data=_upload(save_bytes))

        resp = await client.put("/editor/text", json={"jsonString": "{oops"})
        assert resp.status == 200

        resp = await client.get("/export")
        assert resp.status == 400
        assert await resp.json() == {"error": "Could not parse valid JSON, reset or fix."}

        resp = await client.post("/editor/reset")
        assert resp.status == 200
        assert (await client.get("/export")).status == 200

    run_with_client(scenario)


def test_bad_request_bodies():
    save_bytes = HollowKnightCodec().encode(SAVE_TEXT)

    async def scenario(client, app):
        await client.post("/decode", data=_upload(save_bytes))
        resp = await client.put("/editor/text", data="not json")
        assert resp.status == 400
        resp = await client.put("/editor/text", json=[1, 2])
        assert resp.status == 400
        resp = await client.put("/editor/flea", json={"key": "geo", "value": "true"})
        assert resp.status == 400
        resp = await client.put("/editor/flea", json={"key": "SavedFlea_Dock_16", "value": "maybe"})
        assert resp.status == 400

    run_with_client(scenario)


def test_history_endpoints():
    codec = HollowKnightCodec()

    async def scenario(client, app):
        await client.post("/decode", data=_upload(codec.encode('{"n":1}'), "one.dat"))
        await client.post("/decode", data=_upload(codec.encode('{"n":2}'), "two.dat"))
        await client.post("/decode", data=_upload(codec.encode('{"n":3}'), "three.dat"))

        history = (await (await client.get("/history")).json())["history"]
        assert [entry["fileName"] for entry in history] == ["three.dat", "two.dat", "one.dat"]

        one_hash = history[2]["hash"]
        resp = await client.post(f"/history/{one_hash}/select")
        assert resp.status == 200
        assert (await resp.json())["fileName"] == "one.dat"
        assert app[HISTORY_KEY].entries[0].hash == one_hash

        resp = await client.delete(f"/history/{one_hash}")
        assert [e["fileName"] for e in (await resp.json())["history"]] == ["three.dat", "two.dat"]

        resp = await client.delete("/history/oldest")
        assert [e["fileName"] for e in (await resp.json())["history"]] == ["three.dat"]

        assert (await client.post("/history/123/select")).status == 404
        assert (await client.post("/history/abc/select")).status == 400
        assert (await client.delete("/history/99999999999")).status == 400

    run_with_client(scenario)


def test_history_survives_restart(tmp_path):
    db_path = str(tmp_path / "history.sqlite3")
    save_bytes = HollowKnightCodec().encode(SAVE_TEXT)

    async def upload(client, app):
        await client.post("/decode", data=_upload(save_bytes))

    async def check(client, app):
        history = (await (await client.get("/history")).json())["history"]
        assert [entry["fileName"] for entry in history] == ["user1.dat"]

    run_with_client(upload, storage=SqliteStorage(db_path))
    run_with_client(check, storage=SqliteStorage(db_path))
