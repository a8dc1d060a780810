"""HTTP server entrypoints for invoice rendering."""

from __future__ import annotations

import asyncio
import errno
import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple

from .config import (
    LISTEN_BACKLOG,
    MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG,
    MAX_INFLIGHT_RENDERS,
    MAX_PAGES as MAX_PAGES_CONFIG,
    RENDER_QUEUE_TIMEOUT_MS,
)
from .errors import InvalidInputError, RenderError, StorageError
from .layout import LayoutConfig
from .models import InvoiceInput
from .pagination import estimate_page_count, max_items_for_pages
from .service import render
from .storage import InvoiceStore

logger = logging.getLogger(__name__)

RENDER_INFLIGHT_SEMAPHORE = threading.BoundedSemaphore(MAX_INFLIGHT_RENDERS)
ValidationError = Tuple[int, Dict[str, Any]]

DISCONNECT_ERRNOS = {
    errno.EPIPE,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""


def check_dependencies() -> None:
    try:
        from . import rendering  # noqa: F401
    except ModuleNotFoundError as exc:
        if exc.name == "fpdf":
            raise DependencyError(
                "Missing dependency 'fpdf'. Install project dependencies with "
                "'pip install .'."
            ) from exc
        raise


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def validate_invoice_request(
    body: bytes,
    max_pages: int,
    layout: LayoutConfig,
) -> Tuple[Optional[InvoiceInput], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )

    order = payload.get("order")
    if not isinstance(order, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "'order' must be an object."},
        )

    try:
        invoice = InvoiceInput.from_mappings(
            order, payload.get("customer"), placeholder=layout.item_placeholder
        )
    except InvalidInputError as exc:
        return None, (400, {"error": "invalid_order", "detail": str(exc)})

    estimated_pages = estimate_page_count(len(invoice.order.items), layout)
    if estimated_pages > max_pages:
        return None, (
            413,
            {
                "error": "invoice_too_large",
                "detail": f"Invoice would render {estimated_pages} pages; maximum is {max_pages}.",
                "max_items": max_items_for_pages(max_pages, layout),
            },
        )

    return invoice, None


class InvoiceHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG
    MAX_PAGES = MAX_PAGES_CONFIG
    RENDER_PATHS = ("/", "/invoice", "/invoices")
    HEALTH_PATHS = ("/health", "/healthz", "/ready")

    store: InvoiceStore
    layout: LayoutConfig

    def _write_response(self, status: int, content_type: str, body: bytes) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Dict[str, Any]) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(
                411,
                {
                    "error": "missing_content_length",
                    "detail": "Content-Length header is required.",
                },
            )
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(
                400,
                {
                    "error": "invalid_content_length",
                    "detail": "Content-Length must be an integer.",
                },
            )
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "empty_body", "detail": "Request body cannot be empty."})
            return None

        if content_length > self.MAX_BODY_BYTES:
            self._send_json(
                413,
                {
                    "error": "payload_too_large",
                    "detail": f"Body exceeds {self.MAX_BODY_BYTES} bytes.",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def do_POST(self) -> None:
        if (self.path.rstrip("/") or "/") not in self.RENDER_PATHS:
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return

        body = self._read_body()
        if body is None:
            return

        invoice, validation_error = validate_invoice_request(body, self.MAX_PAGES, self.layout)
        if validation_error is not None:
            status, payload_body = validation_error
            self._send_json(status, payload_body)
            return
        assert invoice is not None

        acquired = RENDER_INFLIGHT_SEMAPHORE.acquire(timeout=RENDER_QUEUE_TIMEOUT_MS / 1000.0)
        if not acquired:
            retry_after_seconds = max(1, (RENDER_QUEUE_TIMEOUT_MS + 999) // 1000)
            self._send_json(
                503,
                {
                    "error": "server_busy",
                    "detail": "Render queue is full; retry shortly.",
                    "retry_after_seconds": retry_after_seconds,
                    "max_inflight_renders": MAX_INFLIGHT_RENDERS,
                },
            )
            return

        try:
            reference = asyncio.run(
                render(invoice.order, invoice.customer, store=self.store, layout=self.layout)
            )
        except StorageError as exc:
            logger.error("Invoice storage failed for order %s: %s", invoice.order.id, exc)
            self._send_json(500, {"error": "storage_failed", "detail": str(exc)})
            return
        except RenderError as exc:
            logger.exception("Invoice rendering failed for order %s", invoice.order.id)
            self._send_json(500, {"error": "render_failed", "detail": str(exc)})
            return
        finally:
            RENDER_INFLIGHT_SEMAPHORE.release()

        self._send_json(201, {"invoice": reference})

    def do_GET(self) -> None:
        if self.path in ("/", *self.HEALTH_PATHS):
            self._send_json(200, {"status": "ok"})
            return

        if self.path.startswith(self.store.url_prefix + "/"):
            try:
                document = asyncio.run(self.store.read(self.path))
            except FileNotFoundError:
                self._send_json(404, {"error": "not_found", "detail": "Invoice does not exist."})
                return
            except StorageError as exc:
                self._send_json(400, {"error": "invalid_reference", "detail": str(exc)})
                return
            self._write_response(200, "application/pdf", document)
            return

        self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG


def make_handler(store: InvoiceStore, layout: LayoutConfig) -> type:
    return type("BoundInvoiceHandler", (InvoiceHandler,), {"store": store, "layout": layout})


def run(
    host: str = "0.0.0.0",
    port: int = 8080,
    store: Optional[InvoiceStore] = None,
    layout: Optional[LayoutConfig] = None,
) -> None:
    check_dependencies()
    store = store or InvoiceStore()
    layout = layout or LayoutConfig.from_env()
    server = InvoiceHTTPServer((host, port), make_handler(store, layout))
    logger.info("Invoice API server listening on http://%s:%d (storing in %s)", host, port, store.directory)
    server.serve_forever()
