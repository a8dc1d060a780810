"""Public package API for storefront invoice generation."""

from __future__ import annotations

from typing import Any, Optional

from .errors import (
    AssetError,
    InvalidInputError,
    InvoiceError,
    LayoutConfigError,
    RenderError,
    StorageError,
)
from .layout import DEFAULT_LAYOUT, LayoutConfig
from .models import Address, Customer, InvoiceInput, LineItem, Order
from .service import render, render_best_effort
from .storage import InvoiceStore


def render_invoice(invoice: InvoiceInput, layout: LayoutConfig = DEFAULT_LAYOUT, brand_image: Optional[str] = None) -> bytes:
    from .rendering import render_invoice as _render_invoice

    return _render_invoice(invoice, layout, brand_image=brand_image)


def run(host: str = "0.0.0.0", port: int = 8080, **kwargs: Any) -> None:
    from .server import run as _run

    _run(host, port, **kwargs)


__all__ = [
    "Address",
    "AssetError",
    "Customer",
    "DEFAULT_LAYOUT",
    "InvalidInputError",
    "InvoiceError",
    "InvoiceInput",
    "InvoiceStore",
    "LayoutConfig",
    "LayoutConfigError",
    "LineItem",
    "Order",
    "RenderError",
    "StorageError",
    "render",
    "render_best_effort",
    "render_invoice",
    "run",
]
