# jara/schemas/__init__.py
"""
Schemas package.

No aggregate exports: import from the concrete module, e.g.
    from jara.schemas.checkout import CheckoutIn
    from jara.schemas.order import OrderOut
"""

__all__: list[str] = []
