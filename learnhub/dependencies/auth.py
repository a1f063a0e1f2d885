"""Viewer context dependencies for FastAPI."""
from typing import Annotated

from fastapi import Header, HTTPException, status

from learnhub.models.entities import Role, Viewer


async def get_viewer(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Viewer:
    """Build the viewer from identity headers set by the auth proxy.

    Raises:
        HTTPException: 401 if no user id is present, 400 for an unknown role.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    role = Role.STUDENT
    if x_user_role:
        try:
            role = Role(x_user_role.strip().lower())
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown role {x_user_role!r}",
            )

    return Viewer(user_id=x_user_id.strip(), role=role)
