"""Scope checks run before any clinical use case touches the store."""

from __future__ import annotations

from shared.exceptions import ForbiddenError
from shared.infrastructure.observability import get_logger

from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.scope import Scope

logger = get_logger(__name__)


def require_scopes(auth: AuthContext, *required: Scope) -> None:
    """
    Raises:
        ForbiddenError: On the first scope in ``required`` the caller lacks
    """
    for scope in required:
        if not auth.has_scope(scope):
            logger.warning(
                "Missing required scope",
                user_id=auth.user_id,
                clinic_id=auth.clinic_id,
                required_scope=scope.value,
                user_scopes=",".join(sorted(s.value for s in auth.scopes)),
            )
            raise ForbiddenError(
                f"Missing required permission: {scope.value}",
                details={"required_scope": scope.value},
            )
