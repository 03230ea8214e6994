"""
auth.py - Authentication and profile endpoints for StudyFlow

Identity is delegated to Firebase Authentication: the client signs in with
Firebase and sends its ID token as `Authorization: Bearer <token>`. This module
verifies the token with google-auth and hands the resulting uid to handlers.

Endpoints:
1. POST /register - create the user document with a display name and email.
2. POST /login    - return the user document, creating it on first sign-in.
3. GET  /me       - the caller's profile.
4. PUT  /profile  - update name, goals, exam dates or profile picture.

Note:
- No passwords are handled or stored here.
- A user document is also created implicitly by any endpoint that needs one.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
import google.auth.transport.requests
from google.oauth2 import id_token

from .config import FIREBASE_PROJECT_ID
from .schemas import ProfileUpdate, RegisterRequest
from .store import FirestoreStore, get_store
from .utils import api_response

# Logger for tracking authentication activities
_logger = logging.getLogger(__name__)

router = APIRouter()

# Reused HTTP transport for fetching Google's public signing certificates
_token_request = google.auth.transport.requests.Request()


def verify_bearer_token(token: str) -> str:
    """
    Verify a Firebase ID token and return its uid.
    Raises HTTPException(401) if the token is invalid or expired.
    """
    try:
        claims = id_token.verify_firebase_token(token, _token_request, audience=FIREBASE_PROJECT_ID)
    except ValueError as e:
        _logger.warning("Rejected Firebase ID token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    uid = (claims or {}).get("user_id") or (claims or {}).get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Token has no subject.")
    return uid


def get_current_uid(authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency resolving the bearer credential to a uid.
    Raises HTTPException(401) if missing or invalid.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    parts = authorization.split()
    if len(parts) != 2:
        raise HTTPException(status_code=401, detail="Malformed authorization header.")
    return verify_bearer_token(parts[1])


@router.post("/register", status_code=201)
async def register(
    payload: Optional[RegisterRequest] = None,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    """
    Create the user document for a freshly signed-up Firebase account.
    Returns 409 if the document already exists.
    """
    if store.get_user(uid):
        _logger.warning("Register failed: uid '%s' already registered.", uid)
        raise HTTPException(status_code=409, detail="User already registered.")

    fields = payload.model_dump(exclude_none=True) if payload else {}
    user = store.create_user(uid, fields)
    _logger.info("New user registered: %s", uid)
    return api_response(user.public_profile(), "User registered successfully")


@router.post("/login")
async def login(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    """Return the caller's profile, creating the user document on first sign-in."""
    user = store.get_or_create_user(uid)
    _logger.info("User logged in successfully: %s", uid)
    return api_response(user.public_profile(), "Login successful")


@router.get("/me")
async def me(uid: str = Depends(get_current_uid), store: FirestoreStore = Depends(get_store)):
    user = store.get_or_create_user(uid)
    return api_response(user.public_profile(), "User profile")


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    uid: str = Depends(get_current_uid),
    store: FirestoreStore = Depends(get_store),
):
    """
    Update any of name, goals, exam_dates, profile_picture.
    Returns 400 when the body carries none of them.
    """
    updates = payload.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update.")

    store.get_or_create_user(uid)
    user = store.update_user(uid, updates)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    _logger.info("Profile updated for user %s: %s", uid, sorted(updates))
    return api_response(user.public_profile(), "Profile updated")
