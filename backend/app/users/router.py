"""Profile and contact-list endpoints.

Profiles are normally created by the web front end; ``PUT /users/{email}``
lets operators and tests register identities directly.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.chat.keys import InvalidIdentityError, validate_identity
from app.dependencies import get_user_directory
from app.storage import UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    """Body of PUT /users/{email}; omitted fields keep their stored value."""
    name: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = None


@router.put("/{email}")
async def upsert_profile(
    email: str,
    body: ProfileUpdate,
    users: UserDirectory = Depends(get_user_directory),
) -> JSONResponse:
    """Create or update the profile of an identity."""
    try:
        validate_identity(email)
    except InvalidIdentityError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    profile = users.upsert_user(email, name=body.name, image=body.image)
    logger.info("[users] Upserted profile %s", email)
    return JSONResponse(profile.model_dump(mode="json"))


@router.get("/{email}")
async def get_profile(
    email: str, users: UserDirectory = Depends(get_user_directory)
) -> JSONResponse:
    profile = users.get_user(email)
    if profile is None:
        return JSONResponse({"error": "User not found"}, status_code=404)
    return JSONResponse(profile.model_dump(mode="json"))


@router.get("/{email}/contacts")
async def list_contacts(
    email: str, users: UserDirectory = Depends(get_user_directory)
) -> JSONResponse:
    """Contact list of a user, in the order entries were added."""
    contacts = users.list_contacts(email)
    return JSONResponse({
        "contacts": [c.model_dump(mode="json") for c in contacts],
        "count": len(contacts),
    })
