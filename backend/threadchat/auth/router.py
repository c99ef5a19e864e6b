"""FastAPI routes and dependencies for the authenticated principal."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from threadchat.auth.identity import IdentityProvider
from threadchat.config import get_settings
from threadchat.models import ErrorKind, Principal

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_identity_provider() -> IdentityProvider:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("IdentityProvider not initialized")


def session_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(get_settings().session_cookie) or None


async def _resolve(request: Request, identity: IdentityProvider) -> Principal | None:
    token = session_token(request)
    if token is None:
        return None
    return await identity.resolve(token)


async def get_current_user(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    """Resolve the caller or fail closed with 401."""
    principal = await _resolve(request, identity)
    if principal is None:
        raise HTTPException(status_code=401, detail=ErrorKind.UNAUTHENTICATED)
    return principal


@router.get("/me", response_model=None)
async def me(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> dict | JSONResponse:
    principal = await _resolve(request, identity)
    if principal is None:
        return JSONResponse({"user": None}, status_code=status.HTTP_401_UNAUTHORIZED)
    return {
        "user": {
            "id": principal.user_id,
            "email": principal.email,
            "name": principal.name,
        }
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Response:
    token = session_token(request)
    if token is not None:
        await identity.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
