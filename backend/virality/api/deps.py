"""API dependencies."""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from virality.config import Settings
from virality.database import get_db
from virality.errors import AuthenticationError
from virality.services.auth_client import AuthClient, AuthSession
from virality.services.store import AnalysisStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


def get_optional_session(request: Request) -> Optional[AuthSession]:
    """Session resolved by the gate middleware, if any."""
    return getattr(request.state, "session", None)


def require_session(session: Optional[AuthSession] = Depends(get_optional_session)) -> AuthSession:
    """Require a valid session for API endpoints."""
    if session is None or not session.user_id:
        raise AuthenticationError("Not authenticated")
    return session


def get_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AnalysisStore:
    return AnalysisStore(db, settings)
