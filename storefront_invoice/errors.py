"""Exceptions raised while producing an invoice."""

from __future__ import annotations


class InvoiceError(Exception):
    """Base class for every invoice generation failure."""


class InvalidInputError(InvoiceError, ValueError):
    """The order or customer record cannot be rendered."""


class AssetError(InvoiceError):
    """An optional decorative asset is unavailable. Never fatal."""


class StorageError(InvoiceError):
    """The finished document could not be written to the invoice directory."""


class RenderError(InvoiceError):
    """Drawing the document failed; the invoice was not generated."""


class LayoutConfigError(InvoiceError, ValueError):
    """The layout configuration describes a table that does not fit the page."""
