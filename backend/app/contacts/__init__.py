"""Contact directory bridge between the relay and the user store."""

from .service import ContactDirectory, local_part

__all__ = ["ContactDirectory", "local_part"]
