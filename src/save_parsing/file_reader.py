"""One-shot asynchronous read of a save file into memory."""

import asyncio
from pathlib import Path
from typing import Union

from .errors import SaveReadError


async def read_save_file(path: Union[str, Path]) -> bytes:
    """Read the whole file at ``path``.

    The returned coroutine resolves exactly once with the file bytes or
    raises ``SaveReadError``.
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, Path(path).read_bytes)
    except OSError as e:
        raise SaveReadError(f"Could not read save file {path}: {e}") from e
