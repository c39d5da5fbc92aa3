"""
Role-Based Access Control (RBAC) for ComplyGrid
Roles form a strict hierarchy; endpoints declare the minimum role they accept
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status

from .auth import get_current_user

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """User roles in the system, lowest privilege first"""
    VIEWER = "VIEWER"
    AUDITOR = "AUDITOR"
    ASSESSOR = "ASSESSOR"
    RISK_MANAGER = "RISK_MANAGER"
    ADMIN = "ADMIN"


ROLE_HIERARCHY: Dict[UserRole, int] = {
    UserRole.VIEWER: 0,
    UserRole.AUDITOR: 1,
    UserRole.ASSESSOR: 2,
    UserRole.RISK_MANAGER: 3,
    UserRole.ADMIN: 4,
}


def _role_level(role: Any) -> Optional[int]:
    try:
        return ROLE_HIERARCHY[UserRole(role)]
    except ValueError:
        return None


def has_minimum_role(user_role: Any, minimum_role: UserRole) -> bool:
    """
    Check whether a role sits at or above the required level.

    Unknown roles never satisfy any requirement.
    """
    level = _role_level(user_role)
    if level is None:
        return False
    return level >= ROLE_HIERARCHY[minimum_role]


def require_minimum_role(
    minimum_role: UserRole, message: str = "Insufficient permissions"
) -> Callable[..., Dict[str, Any]]:
    """
    Build a FastAPI dependency that enforces a minimum role.

    Args:
        minimum_role: Lowest role allowed through
        message: Detail returned with the 403 response

    Returns:
        Dependency returning the authenticated user payload
    """

    def _check_role(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not has_minimum_role(current_user.get("role"), minimum_role):
            logger.warning(
                f"Access denied for user {current_user.get('id')}: "
                f"role {current_user.get('role')} below {minimum_role.value}"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return current_user

    return _check_role


require_assessor = require_minimum_role(UserRole.ASSESSOR, "Assessor role or higher required")
require_risk_manager = require_minimum_role(UserRole.RISK_MANAGER, "Risk manager role or higher required")
