"""额度API"""
from fastapi import APIRouter, Depends

from virality.api.deps import get_store, require_session
from virality.schemas import CreditsResponse
from virality.services.auth_client import AuthSession
from virality.services.store import AnalysisStore

router = APIRouter()


@router.get("", response_model=CreditsResponse)
async def get_credits(
    session: AuthSession = Depends(require_session),
    store: AnalysisStore = Depends(get_store),
):
    """剩余额度与订阅等级"""
    return store.get_credits(session.user_id)
