"""Web front end for decoding, editing and re-encoding Hollow Knight saves."""

import asyncio
from typing import Optional

from aiohttp import web

from save_parsing.content_hash import hash_string
from save_parsing.save_codec import HollowKnightCodec

from .config import AppConfig, config
from .editor import InvalidJsonError, NoSaveLoadedError, SaveDecodeError, SaveEditor
from .history import HistoryStore
from .logger import log
from .storage import KeyValueStorage, SqliteStorage
from .validation import (
    ValidationError,
    validate_file_name,
    validate_flea_field,
    validate_hash,
    validate_json_text,
    validate_save_format,
)

APP_VERSION = "1.0"

HISTORY_KEY = web.AppKey("history", HistoryStore)
EDITOR_KEY = web.AppKey("editor", SaveEditor)
CONFIG_KEY = web.AppKey("config", AppConfig)


def _error(message: str, status: int = 400) -> web.Response:
    return web.json_response({"error": message}, status=status)


async def _json_body(request: web.Request) -> dict:
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Expected a JSON object")
    return body


def _editor_state(editor: SaveEditor) -> dict:
    return {
        "editing": editor.editing,
        "fileName": editor.file_name,
        "jsonString": editor.game_file,
        "hash": hash_string(editor.game_file) if editor.editing else None,
        "fleaFields": [field.to_dict() for field in editor.flea_fields],
    }


async def health_check(request: web.Request) -> web.Response:
    """Simple health check endpoint."""
    return web.Response(text=f"Hollow save editor v{APP_VERSION} is running!", status=200)


async def decode_save(request: web.Request) -> web.Response:
    """Accept a multipart upload and open it in the editor."""
    editor = request.app[EDITOR_KEY]
    data = await request.post()

    upload = data.get("file")
    if not isinstance(upload, web.FileField):
        return _error("A save file must be uploaded in the 'file' field")

    try:
        file_name = validate_file_name(upload.filename)
        save_format = validate_save_format(data.get("format"))
    except ValidationError as e:
        return _error(str(e))

    try:
        editor.open_file(upload.file.read(), file_name, save_format)
    except SaveDecodeError as e:
        return _error(str(e))

    return web.json_response(_editor_state(editor))


async def get_editor(request: web.Request) -> web.Response:
    return web.json_response(_editor_state(request.app[EDITOR_KEY]))


async def update_editor_text(request: web.Request) -> web.Response:
    editor = request.app[EDITOR_KEY]
    try:
        body = await _json_body(request)
        text = validate_json_text(body.get("jsonString"), request.app[CONFIG_KEY].max_upload_bytes)
        editor.update_text(text)
    except ValueError:
        return _error("Request body must be a JSON object")
    except ValidationError as e:
        return _error(str(e))
    except NoSaveLoadedError as e:
        return _error(str(e), status=409)
    return web.json_response(_editor_state(editor))


async def update_flea_field(request: web.Request) -> web.Response:
    editor = request.app[EDITOR_KEY]
    try:
        body = await _json_body(request)
        key = body.get("key")
        value = validate_flea_field(key, body.get("value"))
        editor.set_flea_field(key, value)
    except ValueError:
        return _error("Request body must be a JSON object")
    except ValidationError as e:
        return _error(str(e))
    except NoSaveLoadedError as e:
        return _error(str(e), status=409)
    return web.json_response(_editor_state(editor))


async def reset_editor(request: web.Request) -> web.Response:
    editor = request.app[EDITOR_KEY]
    try:
        editor.reset()
    except NoSaveLoadedError as e:
        return _error(str(e), status=409)
    return web.json_response(_editor_state(editor))


async def export_save(request: web.Request) -> web.Response:
    """Download the current document as a save file."""
    editor = request.app[EDITOR_KEY]
    try:
        save_format = validate_save_format(request.query.get("format"))
        file_bytes = editor.export(save_format)
    except (ValidationError, InvalidJsonError) as e:
        return _error(str(e))
    except NoSaveLoadedError as e:
        return _error(str(e), status=409)

    return web.Response(
        body=file_bytes,
        content_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{editor.file_name}"'},
    )


async def list_history(request: web.Request) -> web.Response:
    history = request.app[HISTORY_KEY]
    return web.json_response({
        "history": [
            {"date": entry.date.isoformat(), "fileName": entry.file_name, "hash": entry.hash}
            for entry in history.entries
        ]
    })


async def select_history(request: web.Request) -> web.Response:
    editor = request.app[EDITOR_KEY]
    try:
        hash_value = validate_hash(request.match_info["hash"])
    except ValidationError as e:
        return _error(str(e))

    if not editor.select_history(hash_value):
        return _error("History entry not found", status=404)
    return web.json_response(_editor_state(editor))


async def delete_history(request: web.Request) -> web.Response:
    history = request.app[HISTORY_KEY]
    try:
        hash_value = validate_hash(request.match_info["hash"])
    except ValidationError as e:
        return _error(str(e))

    history.remove(hash_value)
    history.sync_to_storage()
    return await list_history(request)


async def delete_oldest_history(request: web.Request) -> web.Response:
    history = request.app[HISTORY_KEY]
    history.remove_oldest()
    history.sync_to_storage()
    return await list_history(request)


def create_app(cfg: Optional[AppConfig] = None, storage: Optional[KeyValueStorage] = None) -> web.Application:
    """Build the web application with its own history store and editor."""
    cfg = cfg or config
    if storage is None:
        storage = SqliteStorage(cfg.database_path, cfg.history_quota_bytes)

    history = HistoryStore(storage, cfg.history_key)
    history.sync_from_storage()
    editor = SaveEditor(history, HollowKnightCodec(strict=cfg.strict_envelope))

    app = web.Application(client_max_size=cfg.max_upload_bytes)
    app[CONFIG_KEY] = cfg
    app[HISTORY_KEY] = history
    app[EDITOR_KEY] = editor

    app.router.add_get("/", health_check)
    app.router.add_get("/health", health_check)
    app.router.add_post("/decode", decode_save)
    app.router.add_get("/editor", get_editor)
    app.router.add_put("/editor/text", update_editor_text)
    app.router.add_put("/editor/flea", update_flea_field)
    app.router.add_post("/editor/reset", reset_editor)
    app.router.add_get("/export", export_save)
    app.router.add_get("/history", list_history)
    app.router.add_delete("/history/oldest", delete_oldest_history)
    app.router.add_post("/history/{hash}/select", select_history)
    app.router.add_delete("/history/{hash}", delete_history)
    return app


async def start_web_server(app: web.Application, cfg: Optional[AppConfig] = None) -> web.AppRunner:
    """Start the HTTP server and return its runner."""
    cfg = cfg or config
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, cfg.host, cfg.port)
    await site.start()
    log.info(f"HTTP server started on {cfg.host}:{cfg.port}")
    return runner


async def main():
    """Start the web server and serve until cancelled."""
    runner = await start_web_server(create_app())
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        log.error(f"Failed to start application: {e}")
        raise
