# jara/api/__init__.py
"""
API package.

- no re-exports here; routers are mounted one by one in `jara.main`
"""

__all__ = []
