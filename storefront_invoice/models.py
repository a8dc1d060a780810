"""Order and customer records consumed by the invoice renderer.

Upstream order documents come from the storefront API with camelCase keys
(``orderId``, ``shippingCost``) and optional nested ``product`` records on
line items. The ``from_mapping`` constructors accept those documents as
well as snake_case equivalents, and every optional field is defaulted in
one place, :func:`resolve_field`, which walks an ordered list of dotted
paths and returns the first non-empty value.

All records are frozen: a render never mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidInputError
from .formatting import CENT, parse_decimal


def _lookup(record: Any, path: str) -> Any:
    current = record
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return current


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def resolve_field(records: Union[Any, Sequence[Any]], *paths: str, default: Any = None) -> Any:
    """Return the first non-empty value found along ``paths``.

    ``records`` is one record or a sequence of records searched in order,
    so ``resolve_field((user, address), "name")`` prefers the user's name
    and falls back to the name on the shipping address.
    """
    if isinstance(records, (list, tuple)):
        sources = records
    else:
        sources = (records,)
    for source in sources:
        for path in paths:
            value = _lookup(source, path)
            if not _is_empty(value):
                return value
    return default


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _money(value: Any, field_name: str) -> Decimal:
    amount = parse_decimal(value)
    if amount < 0:
        raise InvalidInputError(f"{field_name} cannot be negative, got {amount}")
    _check_printable(amount, field_name)
    return amount


def _check_printable(amount: Decimal, field_name: str) -> None:
    try:
        amount.quantize(CENT)
    except InvalidOperation as exc:
        raise InvalidInputError(f"{field_name} is too large to print, got {amount}") from exc


def _quantity(value: Any, position: int) -> int:
    if _is_empty(value):
        return 1
    if isinstance(value, bool):
        raise InvalidInputError(f"Item {position}: quantity must be a number")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"Item {position}: invalid quantity {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise InvalidInputError(f"Item {position}: quantity must be a whole number, got {value!r}")
    if number <= 0:
        raise InvalidInputError(f"Item {position}: quantity must be positive, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class Address:
    line: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    name: str = ""
    mobile: str = ""
    email: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> Optional["Address"]:
        if data is None:
            return None
        if isinstance(data, Address):
            return data
        if not isinstance(data, Mapping):
            raise InvalidInputError("shippingAddress must be an object")
        return cls(
            line=_text(resolve_field(data, "address", "line")),
            city=_text(data.get("city")),
            state=_text(data.get("state")),
            postal_code=_text(resolve_field(data, "zipCode", "zip", "postalCode", "postal_code")),
            name=_text(data.get("name")),
            mobile=_text(data.get("mobile")),
            email=_text(data.get("email")),
        )


@dataclass(frozen=True)
class Customer:
    name: str = ""
    email: str = ""
    mobile: str = ""

    @classmethod
    def from_mapping(cls, data: Any) -> "Customer":
        if isinstance(data, Customer):
            return data
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidInputError("customer must be an object")
        return cls(
            name=_text(data.get("name")),
            email=_text(data.get("email")),
            mobile=_text(data.get("mobile")),
        )


@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: int
    unit_price: Decimal
    size: Optional[str] = None
    color: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise InvalidInputError(f"Line item {self.name!r}: quantity must be a positive integer")
        if not isinstance(self.unit_price, Decimal) or self.unit_price < 0:
            raise InvalidInputError(f"Line item {self.name!r}: unit price must be a non-negative Decimal")
        _check_printable(self.line_total, f"Line item {self.name!r} total")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_mapping(cls, data: Any, position: int = 0, placeholder: str = "Product") -> "LineItem":
        if isinstance(data, LineItem):
            return data
        if not isinstance(data, Mapping):
            raise InvalidInputError(f"Item {position} must be an object")
        return cls(
            name=_text(resolve_field(data, "name", "product.name", default=placeholder)),
            quantity=_quantity(data.get("quantity"), position),
            unit_price=_money(
                resolve_field(data, "price", "unit_price", "unitPrice", "product.price"),
                f"Item {position} price",
            ),
            size=_optional_text(data.get("size")),
            color=_optional_text(data.get("color")),
        )


@dataclass(frozen=True)
class Order:
    id: str
    items: Tuple[LineItem, ...]
    created_at: Any = None
    subtotal: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    shipping_address: Optional[Address] = None

    def __post_init__(self) -> None:
        if not _text(self.id):
            raise InvalidInputError("Order id is required")
        if isinstance(self.items, (str, bytes)) or not isinstance(self.items, (list, tuple)):
            raise InvalidInputError("Order items are missing or invalid")
        if not self.items:
            raise InvalidInputError("Order items are missing or invalid")
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        if not all(isinstance(item, LineItem) for item in self.items):
            raise InvalidInputError("Order items must be LineItem records")
        for amount_name in ("subtotal", "shipping_cost", "tax", "total"):
            amount = getattr(self, amount_name)
            if not isinstance(amount, Decimal) or amount < 0:
                raise InvalidInputError(f"{amount_name} must be a non-negative Decimal")
            _check_printable(amount, amount_name)

    @property
    def items_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @classmethod
    def from_mapping(cls, data: Any, placeholder: str = "Product") -> "Order":
        if isinstance(data, Order):
            return data
        if not isinstance(data, Mapping):
            raise InvalidInputError("order must be an object")

        raw_items = data.get("items")
        if isinstance(raw_items, (str, bytes)) or not isinstance(raw_items, (list, tuple)) or not raw_items:
            raise InvalidInputError("Order items are missing or invalid")

        created_at = resolve_field(data, "createdAt", "created_at", "orderDate", "date")
        if isinstance(created_at, bool) or (
            created_at is not None and not isinstance(created_at, (str, date, int, float, Decimal))
        ):
            created_at = str(created_at)

        return cls(
            id=_text(resolve_field(data, "orderId", "order_id", "id")),
            items=tuple(
                LineItem.from_mapping(item, position, placeholder)
                for position, item in enumerate(raw_items, start=1)
            ),
            created_at=created_at,
            subtotal=_money(data.get("subtotal"), "subtotal"),
            shipping_cost=_money(
                resolve_field(data, "shippingCost", "shipping_cost", "shipping"), "shippingCost"
            ),
            tax=_money(data.get("tax"), "tax"),
            total=_money(data.get("total"), "total"),
            shipping_address=Address.from_mapping(
                resolve_field(data, "shippingAddress", "shipping_address")
            ),
        )


@dataclass(frozen=True)
class InvoiceInput:
    order: Order
    customer: Customer

    @classmethod
    def from_mappings(cls, order: Any, customer: Any, placeholder: str = "Product") -> "InvoiceInput":
        return cls(order=Order.from_mapping(order, placeholder), customer=Customer.from_mapping(customer))

    @property
    def bill_to_name(self) -> str:
        return _text(resolve_field((self.customer, self.order.shipping_address), "name", default="Customer"))

    @property
    def bill_to_mobile(self) -> str:
        return _text(resolve_field((self.customer, self.order.shipping_address), "mobile", default=""))

    @property
    def bill_to_email(self) -> str:
        return _text(resolve_field((self.customer, self.order.shipping_address), "email", default=""))
