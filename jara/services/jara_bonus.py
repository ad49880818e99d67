# jara/services/jara_bonus.py
from __future__ import annotations


def jara_quantity(quantity: int, buy_qty: int, get_qty: int) -> int:
    """
    Buy-X-get-Y bonus ("Jara") units for one cart line:

        buy_qty > 0 : floor(quantity / buy_qty) * get_qty
        otherwise   : 0

    Pure and total over non-negative integers; negative input raises ValueError.
    Used by the checkout splitter and by quote/display paths alike.
    """
    quantity = int(quantity)
    buy_qty = int(buy_qty or 0)
    get_qty = int(get_qty or 0)

    if quantity < 0 or buy_qty < 0 or get_qty < 0:
        raise ValueError(
            f"jara quantities must be non-negative: quantity={quantity} buy={buy_qty} get={get_qty}"
        )
    if buy_qty == 0:
        return 0
    return (quantity // buy_qty) * get_qty
