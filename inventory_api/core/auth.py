from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from inventory_api.services import Services
from inventory_api.services.session import Identity


def get_services(request: Request) -> Services:
    return request.app.state.services


async def current_identity(
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> Optional[Identity]:
    """Identity behind the request's access token, or None for anonymous requests."""
    return await services.sessions.resolve(authorization)


async def current_user(identity: Optional[Identity] = Depends(current_identity)) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
