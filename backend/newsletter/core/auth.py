from uuid import UUID

from fastapi import HTTPException, Request


def get_current_user(request: Request) -> UUID:
    """Return the authenticated caller's id.

    Credentials are checked upstream; the gateway forwards the principal in
    the ``X-User-Id`` header.
    """
    user_id_header = request.headers.get("X-User-Id")
    if not user_id_header:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        return UUID(user_id_header)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header") from None
