"""Request bodies for the message edit endpoint.

Fields are optional at the schema level so missing values produce the
endpoint's own 400 response instead of a validation error.
"""
from typing import Optional

from pydantic import BaseModel, Field


class EditMessageRequest(BaseModel):
    """Body of PUT /messages/{message_id}."""
    email: Optional[str] = Field(None, description="Identity of the original sender")
    text: Optional[str] = Field(None, description="Replacement text")
