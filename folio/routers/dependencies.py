"""Shared FastAPI dependencies for the API routers."""

from fastapi import HTTPException, Header, status


async def get_user_id(
    x_user_id: str | None = Header(None, description="Caller's user ID"),
) -> str:
    """
    Return the caller's user ID from the X-User-Id header.

    The header is trusted as-is; identity is established upstream.

    Raises:
        HTTPException: 401 if the header is missing or empty.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id
