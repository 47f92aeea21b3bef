from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from inventory_api.core.auth import get_services
from inventory_api.core.results import Failure, FailureKind
from inventory_api.routers.errors import http_error
from inventory_api.schemas.users import AuthenticatedUserLoginResponse, AuthenticationRequest, CreateUserRequest
from inventory_api.services import Services

router = APIRouter()


@router.post("/create", response_model=int)
async def create_user(payload: CreateUserRequest, services: Services = Depends(get_services)):
    """Creates a user provided a first name, surname, username and password."""
    result = await services.credentials.create_user(
        payload.first_name, payload.last_name, payload.username, payload.password
    )
    if isinstance(result, Failure):
        raise http_error(result)
    return result.value


@router.post("/authenticate", response_model=AuthenticatedUserLoginResponse)
async def authenticate_user(
    payload: AuthenticationRequest,
    response: Response,
    services: Services = Depends(get_services),
):
    """Authenticates a user; the access token is also returned in the Authorization response header."""
    user_id = await services.credentials.authenticate(payload.username, payload.password)
    if user_id is None:
        raise http_error(Failure(FailureKind.UNAUTHORIZED))

    pair = await services.tokens.issue_token_pair(user_id)
    response.headers["Authorization"] = pair.access_token
    return AuthenticatedUserLoginResponse(
        user_id=pair.user_id,
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        refresh_token_expiration=pair.refresh_token_expiration,
    )


@router.get("/refresh", response_model=str)
async def refresh_access_token(
    user_id: int = Query(alias="userId"),
    refresh_token: str = Query(alias="refreshToken"),
    services: Services = Depends(get_services),
):
    """Generates a new access token (lasting an hour) from a valid refresh token."""
    if not await services.credentials.is_refresh_token_valid(refresh_token, user_id=user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid refresh token")
    return services.tokens.create_access_token(user_id)
