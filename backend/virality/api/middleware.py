"""Session gate middleware."""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from virality.config import Settings
from virality.services.session_gate import SessionGate


def set_session_cookies(response, cookies: dict, settings: Settings) -> None:
    for name, value in cookies.items():
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/",
        )


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Run the session gate before every request and write back rotated cookies."""

    def __init__(self, app, gate: SessionGate):
        super().__init__(app)
        self.gate = gate

    async def dispatch(self, request: Request, call_next):
        decision = await self.gate.evaluate(request.url.path, request.cookies)
        if not decision.passed:
            response = RedirectResponse(url=decision.redirect_to, status_code=307)
        else:
            request.state.session = decision.session
            response = await call_next(request)

        if decision.cookies_to_set:
            set_session_cookies(response, decision.cookies_to_set, self.gate.settings)
        return response
