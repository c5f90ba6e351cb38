from .base import TableRegistry
from .registry import build_default_registry

__all__ = ["TableRegistry", "build_default_registry"]
