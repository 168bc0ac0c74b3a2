# Domain exceptions raised by the service layer (stores, ledger, feed, comments).
# Controllers catch these and convert them to HTTPException via to_http().

from fastapi import HTTPException, status


class EngagementServiceError(Exception):
    """Base class for every domain error this service raises."""


class InvalidQueryError(EngagementServiceError):
    """Malformed view, sort mode, period, category or page values."""


class ContentNotFoundError(EngagementServiceError):
    def __init__(self, content_id) -> None:
        self.content_id = content_id
        super().__init__(f"Content {content_id} not found")


class CommentNotFoundError(EngagementServiceError):
    def __init__(self, comment_id) -> None:
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id} not found")


class InvalidActorError(EngagementServiceError):
    """Actor identifier is missing, malformed or the nil UUID."""


class UnauthorizedError(EngagementServiceError):
    """Operation requires a resolved actor but none was supplied."""


class ContentAccessDeniedError(EngagementServiceError):
    pass


class CommentAccessDeniedError(EngagementServiceError):
    pass


class StoreUnavailableError(EngagementServiceError):
    """Transient database failure. Safe for the caller to retry."""


_STATUS_BY_ERROR: dict[type[EngagementServiceError], int] = {
    InvalidQueryError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ContentNotFoundError: status.HTTP_404_NOT_FOUND,
    CommentNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidActorError: status.HTTP_400_BAD_REQUEST,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    ContentAccessDeniedError: status.HTTP_403_FORBIDDEN,
    CommentAccessDeniedError: status.HTTP_403_FORBIDDEN,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http(exc: EngagementServiceError) -> HTTPException:
    """Map a domain error onto the HTTPException the router layer returns."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    detail = str(exc) or type(exc).__name__
    return HTTPException(status_code=status_code, detail=detail, headers=headers)
