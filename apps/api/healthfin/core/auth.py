from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from jose import JWTError, jwt
from starlette.requests import Request

from healthfin.core.config import get_settings


ADMIN_ROLES = {"admin", "system.admin"}


@dataclass
class AuthUser:
    sub: str
    roles: list[str]
    facility_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return any(role.lower() in ADMIN_ROLES for role in self.roles)


def _parse_facility_claim(raw: object) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return None


async def get_current_user(request: Request) -> AuthUser:
    auth_header = request.headers.get("authorization", "")
    token = auth_header.replace("Bearer ", "") if auth_header.startswith("Bearer ") else ""

    if not token:
        return AuthUser(sub="anonymous", roles=["guest"])

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return AuthUser(sub="anonymous", roles=["guest"])

    roles = payload.get("roles", ["user"])
    if not isinstance(roles, list):
        roles = ["user"]
    return AuthUser(
        sub=str(payload.get("sub", "anonymous")),
        roles=[str(role) for role in roles],
        facility_id=_parse_facility_claim(payload.get("facility_id")),
    )


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    return user
