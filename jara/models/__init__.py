# jara/models/__init__.py
"""
ORM model exports.
"""

from importlib import import_module


def _export(module_name: str, class_name: str) -> None:
    module = import_module(module_name)
    globals()[class_name] = getattr(module, class_name)


MODEL_SPECS = [
    ("jara.models.store", "Store"),
    ("jara.models.store_logistics", "StoreLogistics"),
    ("jara.models.order", "Order"),
    ("jara.models.order_item", "OrderItem"),
]

for _mod, _cls in MODEL_SPECS:
    _export(_mod, _cls)

__all__ = [cls for _, cls in MODEL_SPECS]
