"""Invoice directory: naming, exclusive writes and public references."""

from __future__ import annotations

import logging
import os
import re
import time
from typing import Callable, Optional

import aiofiles
from aiofiles import os as aio_os

from . import config
from .errors import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
MAX_NAME_ATTEMPTS = 1000


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def safe_order_id(order_id: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("-", order_id.strip()).strip("-")
    return cleaned or "order"


def invoice_filename(order_id: str, millis: int, extension: str = "pdf") -> str:
    return f"invoice-{safe_order_id(order_id)}-{millis}.{extension}"


class InvoiceStore:
    """Writes each invoice to its own new file under ``directory``.

    Files are opened in exclusive-create mode, so two renders can never
    share a file; a name collision moves the millisecond stamp forward and
    tries again. References handed back to callers are
    ``<url_prefix>/<filename>``.
    """

    def __init__(
        self,
        directory: Optional[str] = None,
        url_prefix: Optional[str] = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.directory = os.path.abspath(directory or config.OUTPUT_DIR)
        self.url_prefix = "/" + (url_prefix or config.URL_PREFIX).strip("/")
        self.clock = clock

    def reference_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def resolve(self, reference: str) -> str:
        """Map a reference or bare filename to its path inside the directory."""
        name = reference
        if name.startswith(self.url_prefix + "/"):
            name = name[len(self.url_prefix) + 1 :]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise StorageError(f"Invalid invoice reference: {reference!r}")
        return os.path.join(self.directory, name)

    async def save(self, order_id: str, document: bytes, extension: str = "pdf") -> str:
        try:
            await aio_os.makedirs(self.directory, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create invoice directory {self.directory}: {exc}") from exc

        millis = self.clock()
        for _ in range(MAX_NAME_ATTEMPTS):
            filename = invoice_filename(order_id, millis, extension)
            path = os.path.join(self.directory, filename)
            try:
                await self._write_new(path, document)
            except FileExistsError:
                millis += 1
                continue
            logger.info("Stored invoice %s (%d bytes)", filename, len(document))
            return self.reference_for(filename)

        raise StorageError(f"Could not find a free invoice filename for order {order_id!r}")

    async def _write_new(self, path: str, document: bytes) -> None:
        try:
            handle = await aiofiles.open(path, "xb")
        except FileExistsError:
            raise
        except OSError as exc:
            raise StorageError(f"Cannot create {path}: {exc}") from exc

        try:
            try:
                await handle.write(document)
            finally:
                await handle.close()
        except OSError as exc:
            await self._discard(path)
            raise StorageError(f"Failed writing {path}: {exc}") from exc

    async def _discard(self, path: str) -> None:
        try:
            await aio_os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Could not remove partial invoice %s", path)

    async def read(self, reference: str) -> bytes:
        path = self.resolve(reference)
        try:
            async with aiofiles.open(path, "rb") as handle:
                return await handle.read()
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc
