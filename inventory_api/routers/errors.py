from fastapi import HTTPException, status

from inventory_api.core.results import Failure, FailureKind

_STATUS_BY_KIND = {
    FailureKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    # Store failures are reported as a plain bad request, never with detail
    FailureKind.INTERNAL: status.HTTP_400_BAD_REQUEST,
}

_DETAIL_BY_KIND = {
    FailureKind.UNAUTHORIZED: "Unauthorized",
    FailureKind.CONFLICT: "Conflict",
    FailureKind.INTERNAL: "Request could not be completed",
}


def http_error(failure: Failure) -> HTTPException:
    detail = _DETAIL_BY_KIND.get(failure.kind) or failure.reason or "Bad request"
    headers = {"WWW-Authenticate": "Bearer"} if failure.kind == FailureKind.UNAUTHORIZED else None
    return HTTPException(status_code=_STATUS_BY_KIND[failure.kind], detail=detail, headers=headers)
