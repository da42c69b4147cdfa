from typing import Optional

from fastapi import Header, HTTPException, status


async def get_current_user_id(
    user_id: Optional[str] = Header(
        default=None,
        alias="X-User-Id",
        description=(
            "Identifier of the authenticated caller, set by the upstream "
            "auth gateway after token verification."
        ),
    ),
) -> str:
    """
    Dependency resolving the caller for owner-scoped endpoints.

    Rules
    -----
    - Header missing or blank -> 401.
    - Otherwise the trimmed header value is the caller's user id.

    Token issuance and verification happen before requests reach this
    service; only the resulting identity is consumed here.
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user.",
        )
    return user_id.strip()
