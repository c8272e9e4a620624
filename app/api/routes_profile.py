"""
User profile API routes - requires authentication
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.schemas.profile import ProfileUpdate
from app.services.repositories import SettingsRepo
from app.services.store import DocumentStore
from app.utils.responses import success_response
from app.utils.security import get_current_user_id

router = APIRouter()

DEFAULT_PREFERENCES = {"notifications": True, "theme": "light", "language": "en"}


@router.get("/profile")
async def get_profile(
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    profile = SettingsRepo.get(store, user_id) or {"id": user_id, "userId": user_id}
    profile["settings"] = {**DEFAULT_PREFERENCES, **(profile.get("settings") or {})}
    return success_response(profile=profile)


@router.patch("/profile")
async def update_profile(
    profile_data: ProfileUpdate,
    store: DocumentStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Merge the sent fields into the caller's profile"""
    updates = profile_data.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if "settings" in updates:
        current = (SettingsRepo.get(store, user_id) or {}).get("settings") or {}
        updates["settings"] = {**current, **updates["settings"]}

    SettingsRepo.update(store, user_id, updates)
    return success_response(profile=SettingsRepo.get(store, user_id), message="Profile updated successfully")
