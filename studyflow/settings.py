"""settings.py - Appearance settings (dark mode, colour theme)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from .auth import get_current_uid
from .models import ColorTheme
from .schemas import DarkModeUpdate, ThemeUpdate
from .store import FirestoreStore, get_store
from .utils import api_response

_logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_THEMES = [theme.value for theme in ColorTheme]


@router.patch("/dark-mode")
async def toggle_dark_mode(
    payload: Optional[DarkModeUpdate] = None,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    """Flip the dark-mode flag, or set it explicitly when the body carries `dark_mode`."""
    user = store.get_or_create_user(uid)
    if payload is not None and payload.dark_mode is not None:
        new_value = payload.dark_mode
    else:
        new_value = not user.dark_mode

    store.update_user(uid, {"dark_mode": new_value})
    return api_response({"dark_mode": new_value}, "Dark mode updated")


@router.patch("/theme")
async def change_theme(
    payload: ThemeUpdate,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    if payload.theme not in ALLOWED_THEMES:
        _logger.warning("Rejected theme '%s' for user %s", payload.theme, uid)
        raise HTTPException(status_code=400, detail=f"Invalid theme. Allowed: {', '.join(ALLOWED_THEMES)}")

    store.get_or_create_user(uid)
    store.update_user(uid, {"color_theme": payload.theme})
    return api_response({"theme": payload.theme}, "Theme updated")
