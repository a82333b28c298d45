from fastapi import APIRouter, Depends, Request, Response

from shoplocal.application.auth import Actor
from shoplocal.core.config import settings
from shoplocal.domain.schemas import LoginRequest, RegisterRequest, SessionOut, UserOut
from shoplocal.interfaces.dependencies import current_actor, get_auth, session_token

router = APIRouter(prefix="/api", tags=["auth"])


def _start_session(response: Response, user, token: str) -> dict:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_TTL,
        httponly=True,
        samesite="lax",
    )
    return SessionOut(token=token, user=UserOut.model_validate(user)).to_payload()


@router.post("/register", status_code=201)
def register(body: RegisterRequest, response: Response, auth=Depends(get_auth)):
    user, token = auth.register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        phone=body.phone,
        language=body.language,
    )
    return _start_session(response, user, token)


@router.post("/login")
def login(body: LoginRequest, response: Response, auth=Depends(get_auth)):
    user, token = auth.login(body.email, body.password)
    return _start_session(response, user, token)


@router.post("/logout", status_code=204)
def logout(request: Request, auth=Depends(get_auth)):
    auth.logout(session_token(request))
    response = Response(status_code=204)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/user")
def current_user(actor: Actor = Depends(current_actor), auth=Depends(get_auth)):
    return UserOut.model_validate(auth.current_user(actor)).to_payload()
