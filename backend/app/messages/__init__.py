"""HTTP edit/delete surface for stored messages."""

from .router import router

__all__ = ["router"]
