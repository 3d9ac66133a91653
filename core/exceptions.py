"""
Typed API errors.

Each error kind carries a stable ``default_code`` so clients can tell
"no credential" from "credential invalid" from "account banned" without
parsing messages. ``common.exceptions.api_exception_handler`` renders them
and merges ``extra_fields()`` into the response body.
"""
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
)


class AuthError(APIException):
    """Base for every principal resolution and authorization failure."""

    def extra_fields(self):
        return {}


class MissingCredential(AuthError, NotAuthenticated):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication credentials were not provided."
    default_code = "missing_credential"


class InvalidOrExpiredCredential(AuthError, AuthenticationFailed):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid or expired token. Please log in again."
    default_code = "invalid_credential"


class StaleCredentialAfterRoleChange(AuthError, AuthenticationFailed):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Your account role has changed. Please log in again."
    default_code = "stale_credential"


class AccountBanned(AuthError, PermissionDenied):
    default_code = "account_banned"

    def __init__(self, reason="", *, shop=False):
        self.reason = reason or ""
        subject = "shop" if shop else "account"
        detail = f"Your {subject} has been banned."
        if self.reason:
            detail = f"{detail} Reason: {self.reason}"
        super().__init__(detail=detail)

    def extra_fields(self):
        return {"reason": self.reason}


class AccountNotApproved(AuthError, PermissionDenied):
    default_code = "account_not_approved"

    def __init__(self, status, reason=""):
        self.status = status
        self.reason = reason or ""
        if status == "rejected":
            detail = "Your shop has been rejected. Reason: {}".format(
                self.reason or "No reason provided"
            )
        else:
            detail = (
                "Your shop is pending admin approval. "
                "You cannot perform this action until approved."
            )
        super().__init__(detail=detail)

    def extra_fields(self):
        fields = {"status": self.status}
        if self.status == "rejected":
            fields["reason"] = self.reason
        return fields


class InsufficientCapability(AuthError, PermissionDenied):
    default_code = "insufficient_capability"

    def __init__(self, capability):
        self.capability = str(capability)
        super().__init__(
            detail=f"You do not have permission to access '{self.capability}'."
        )

    def extra_fields(self):
        return {"capability": self.capability}


class PrincipalNotAssignable(AuthError, PermissionDenied):
    default_detail = "This account cannot act on the marketplace API."
    default_code = "principal_not_assignable"


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class DistrictUnavailable(NotFound):
    default_detail = "District not found or inactive."
    default_code = "district_unavailable"

    def __init__(self, reason=None):
        self.reason = reason or self.default_detail
        super().__init__(detail=self.reason)

    def extra_fields(self):
        return {"reason": self.reason}


class InvalidFeeValue(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Fee must be a non-negative number."
    default_code = "invalid_fee"


# ---------------------------------------------------------------------------
# Store manager service
# ---------------------------------------------------------------------------


class ServiceStateError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The store manager service does not allow this action."
    default_code = "invalid_service_state"


class ConcurrentAssignmentError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The manager assignment was changed by another request. Please retry."
    default_code = "assignment_conflict"
