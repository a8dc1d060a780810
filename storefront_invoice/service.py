"""Asynchronous entry point: order + customer in, stored invoice reference out."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Iterable, Optional

from .assets import optional_brand_image
from .errors import InvoiceError, RenderError
from .layout import LayoutConfig
from .models import InvoiceInput
from .storage import InvoiceStore

logger = logging.getLogger(__name__)


def _draw(invoice: InvoiceInput, layout: LayoutConfig, brand_image: Optional[str]) -> bytes:
    from .rendering import InvoiceRenderer

    return InvoiceRenderer(invoice, layout, brand_image=brand_image).render()


async def render(
    order: Any,
    customer: Any,
    *,
    store: Optional[InvoiceStore] = None,
    layout: Optional[LayoutConfig] = None,
    brand_image_candidates: Optional[Iterable[str]] = None,
) -> str:
    """Render and store the invoice for ``order``, returning its reference.

    ``order`` and ``customer`` may be model instances or plain mappings in
    the storefront's JSON shape. Raises :class:`InvalidInputError` before
    any drawing or file access when the order cannot be rendered,
    :class:`RenderError` when drawing fails and :class:`StorageError` when
    the invoice directory cannot be written. A missing brand image is only
    logged.
    """
    layout = layout or LayoutConfig.from_env()
    invoice = InvoiceInput.from_mappings(order, customer, placeholder=layout.item_placeholder)
    store = store or InvoiceStore()

    brand_image = await optional_brand_image(brand_image_candidates)

    loop = asyncio.get_running_loop()
    try:
        document = await loop.run_in_executor(None, partial(_draw, invoice, layout, brand_image))
    except InvoiceError:
        raise
    except Exception as exc:
        raise RenderError(f"Rendering invoice for order {invoice.order.id} failed: {exc}") from exc

    return await store.save(invoice.order.id, document)


async def render_best_effort(order: Any, customer: Any, **kwargs: Any) -> Optional[str]:
    """Like :func:`render`, but logs failures and returns ``None``.

    Order fulfilment uses this so a failed invoice never blocks completing
    the order.
    """
    try:
        return await render(order, customer, **kwargs)
    except InvoiceError:
        logger.exception("Invoice generation failed")
        return None
