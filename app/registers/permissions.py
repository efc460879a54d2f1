"""
Actor checks for register operations.

Two layers check the same permission:
- IsRegisterOperator: DRF permission class on the mutating endpoints
- require_operator(): called by every mutating service method, so the actor
  is re-validated server-side no matter which caller reaches the service

Permission:
    registers.operate_register - open/close registers, record payments and
    cancellations. Superusers hold it implicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from core.exceptions import PermissionDeniedError

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView

OPERATE_REGISTER_PERMISSION = "registers.operate_register"


def require_operator(actor) -> None:
    """
    Ensure the actor is an active, authenticated register operator.

    Raises:
        PermissionDeniedError: Missing, anonymous, inactive, or lacking
            registers.operate_register
    """
    if actor is None or not getattr(actor, "is_authenticated", False):
        raise PermissionDeniedError(
            "An authenticated user is required",
            error_code="ACTOR_NOT_AUTHENTICATED",
        )
    if not actor.is_active:
        raise PermissionDeniedError(
            "User account is inactive",
            error_code="ACTOR_INACTIVE",
            details={"user_id": actor.pk},
        )
    if not actor.has_perm(OPERATE_REGISTER_PERMISSION):
        raise PermissionDeniedError(
            "User may not operate the cash register",
            error_code="REGISTER_PERMISSION_REQUIRED",
            details={"user_id": actor.pk},
        )


class IsRegisterOperator(permissions.BasePermission):
    """Allows access only to users holding registers.operate_register."""

    message = "You do not have permission to operate the cash register."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and user.is_active
            and user.has_perm(OPERATE_REGISTER_PERMISSION)
        )
