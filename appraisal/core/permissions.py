# appraisal/core/permissions.py
from typing import Callable, Iterable, Optional
from appraisal.core.exceptions import PermissionDeniedError

STAFF = "staff"
MANAGER = "manager"
DIRECTOR = "director"
ADMIN = "admin"

ALL_ROLES = (STAFF, MANAGER, DIRECTOR, ADMIN)


def has_role(user, name: str) -> bool:
    return user is not None and user.is_active and name in user.role_names


def is_admin(user) -> bool:
    return has_role(user, ADMIN)


def authorize(
    user,
    roles: Optional[Iterable[str]] = None,
    predicate: Optional[Callable[[object], bool]] = None,
    detail: str = "Not allowed",
) -> None:
    """Single capability check run before any state-mutating operation.

    The user must hold at least one of ``roles`` (when given) and satisfy
    ``predicate`` (when given), otherwise PermissionDeniedError is raised.
    """
    if user is None or not user.is_active:
        raise PermissionDeniedError(detail)
    if roles is not None and not any(has_role(user, r) for r in roles):
        raise PermissionDeniedError(detail)
    if predicate is not None and not predicate(user):
        raise PermissionDeniedError(detail)
