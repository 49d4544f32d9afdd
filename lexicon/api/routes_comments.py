"""Routes des commentaires de l'utilisateur courant."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from lexicon.api.deps import bounded_limit, get_activity_service, get_current_user, get_settings
from lexicon.core.settings import Settings
from lexicon.domain.models import Comment
from lexicon.services.activity_service import ActivityService

router = APIRouter(prefix="/comments", tags=["comments"])

_activity_dep = Depends(get_activity_service)
_settings_dep = Depends(get_settings)
_current_user_dep = Depends(get_current_user)


@router.get("/last-edited-by-me", response_model=list[Comment])
def last_edited_by_me(
    limit: int = Query(10),
    user: str = _current_user_dep,
    activity: ActivityService = _activity_dep,
    settings: Settings = _settings_dep,
):
    """Mes derniers commentaires créés ou modifiés."""
    return activity.find_my_last_edited_comments(user, bounded_limit(limit, settings))
