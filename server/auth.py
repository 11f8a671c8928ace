"""Admin identity dependency. Verifying the caller happens upstream of this service."""

from typing import Optional

from fastapi import Header, HTTPException

ADMIN_HEADER = "X-Admin-Id"


def get_admin_id(
    x_admin_id: Optional[str] = Header(None, alias=ADMIN_HEADER),
) -> str:
    """Require the admin id header. Raises 401 if absent."""
    admin_id = (x_admin_id or "").strip()
    if not admin_id:
        raise HTTPException(status_code=401, detail=f"{ADMIN_HEADER} header required")
    return admin_id
