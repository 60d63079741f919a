from uuid import UUID

from fastapi import Header, HTTPException


def get_actor_id(
    x_actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
) -> UUID:
    if not x_actor_id:
        raise HTTPException(
            status_code=400,
            detail="Missing actor context. Provide X-Actor-Id header.",
        )
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="X-Actor-Id must be a UUID")
