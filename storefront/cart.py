"""Session cart.

The cart is a tuple of `CartLine` values. The functions here never mutate
their input; route handlers load the cart from the session, apply one of
them and store the result back.
"""
from typing import Iterable, MutableMapping, Tuple

from .schemas import MAX_QTY, CartLine
from .utils import parse_int

SESSION_KEY = "cart"

Cart = Tuple[CartLine, ...]


def clamp_qty(value) -> int:
    """Quantities below 1 (or unparseable) become 1; large ones become MAX_QTY."""
    return min(MAX_QTY, max(1, parse_int(value, default=1)))


def add(cart: Cart, product, qty=1) -> Cart:
    """Add `qty` of `product`, incrementing the line if it is already present.

    `product` is anything with id/name/price/image attributes; its fields are
    copied so later catalog edits do not touch the cart.
    """
    qty = clamp_qty(qty)
    for idx, line in enumerate(cart):
        if line.product_id == product.id:
            bumped = line.model_copy(update={"qty": min(MAX_QTY, line.qty + qty)})
            return cart[:idx] + (bumped,) + cart[idx + 1:]
    line = CartLine(
        product_id=product.id,
        name=product.name,
        price=product.price,
        image=product.image or "",
        qty=qty,
    )
    return cart + (line,)


def update(cart: Cart, product_id, qty) -> Cart:
    """Set the quantity of an existing line; unknown products leave the cart as is."""
    pid = parse_int(product_id)
    for idx, line in enumerate(cart):
        if line.product_id == pid:
            changed = line.model_copy(update={"qty": clamp_qty(qty)})
            return cart[:idx] + (changed,) + cart[idx + 1:]
    return cart


def clear(cart: Cart) -> Cart:
    return ()


def total(cart: Iterable[CartLine]) -> int:
    return sum(line.price * line.qty for line in cart)


def load(session: MutableMapping) -> Cart:
    return tuple(CartLine.model_validate(raw) for raw in session.get(SESSION_KEY) or [])


def store(session: MutableMapping, cart: Cart) -> None:
    session[SESSION_KEY] = [line.model_dump() for line in cart]
