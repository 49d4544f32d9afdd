# ============================================================
# Module : lexicon/api/routes_assets.py
# Objet  : Fil d'activité /assets/* (modifications et commentaires).
# Notes  : Les endpoints "mine" exigent l'en-tête X-User.
# ============================================================
"""Routes du fil d'activité."""

from __future__ import annotations

from email.utils import formatdate

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response

from lexicon.api.deps import (
    bounded_limit,
    get_activity_service,
    get_current_user,
    get_optional_user,
    get_settings,
)
from lexicon.apigw.errors import unauthorized
from lexicon.core.http_constants import LAST_MODIFIED_HEADER
from lexicon.core.settings import Settings
from lexicon.domain.models import RecentlyCommentedAsset, RecentlyModifiedAsset
from lexicon.services.activity_service import ActivityService

router = APIRouter(prefix="/assets", tags=["assets"])

_activity_dep = Depends(get_activity_service)
_settings_dep = Depends(get_settings)
_current_user_dep = Depends(get_current_user)
_optional_user_dep = Depends(get_optional_user)


@router.get("/last-edited", response_model=list[RecentlyModifiedAsset])
def last_edited(
    request: Request,
    response: Response,
    limit: int = Query(10),
    for_current_user_only: bool = Query(False, alias="forCurrentUserOnly"),
    user: str | None = _optional_user_dep,
    activity: ActivityService = _activity_dep,
    settings: Settings = _settings_dep,
):
    """Derniers actifs créés ou modifiés (par l'utilisateur courant si demandé)."""
    limit = bounded_limit(limit, settings)
    logger = structlog.get_logger(__name__).bind(request_id=request.headers.get("X-Request-ID"))
    logger.info("last_edited", limit=limit, for_current_user_only=for_current_user_only)
    if for_current_user_only:
        if user is None:
            raise unauthorized("Missing user identity")
        assets = activity.find_last_edited_by(user, limit)
    else:
        assets = activity.find_last_edited(limit)
    response.headers[LAST_MODIFIED_HEADER] = formatdate(
        activity.last_modified() / 1000, usegmt=True
    )
    return assets


@router.get("/last-commented", response_model=list[RecentlyCommentedAsset])
def last_commented(
    limit: int = Query(10),
    activity: ActivityService = _activity_dep,
    settings: Settings = _settings_dep,
):
    return activity.find_last_commented(bounded_limit(limit, settings))


@router.get("/last-commented-in-reaction-to-mine", response_model=list[RecentlyCommentedAsset])
def last_commented_in_reaction_to_mine(
    limit: int = Query(10),
    user: str = _current_user_dep,
    activity: ActivityService = _activity_dep,
    settings: Settings = _settings_dep,
):
    """Actifs où un autre utilisateur a commenté après mon dernier commentaire."""
    return activity.find_last_commented_in_reaction(user, bounded_limit(limit, settings))


@router.get("/my-last-commented", response_model=list[RecentlyCommentedAsset])
def my_last_commented(
    limit: int = Query(10),
    user: str = _current_user_dep,
    activity: ActivityService = _activity_dep,
    settings: Settings = _settings_dep,
):
    """Derniers commentaires sur les actifs que j'ai modifiés."""
    return activity.find_my_last_commented(user, bounded_limit(limit, settings))
