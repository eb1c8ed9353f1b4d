"""
Custom Exceptions for Csystem
=============================

Raise these from routers and services instead of bare HTTPException so the
API layer renders one error shape:

    {"code": "...", "message": "...", "details": {...}}

Usage:
    from csystem.exceptions import CustomModuleNotFoundError

    if not module:
        raise CustomModuleNotFoundError(module_id)
"""

from typing import Any, Dict, Optional


class CsystemError(Exception):
    """Base exception for all Csystem errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CsystemError):
    """Credentials missing, invalid or expired"""

    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(CsystemError):
    """Authenticated but not allowed to do this"""

    status_code = 403

    def __init__(self, message: str = "Forbidden: Insufficient role"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(CsystemError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class PersonNotFoundError(ResourceNotFoundError):
    def __init__(self, person_id: Any):
        super().__init__("Person", person_id)


class ClubNotFoundError(ResourceNotFoundError):
    def __init__(self, club_id: Any):
        super().__init__("Club", club_id)


class CustomModuleNotFoundError(ResourceNotFoundError):
    def __init__(self, module_id: Any):
        super().__init__("Module", module_id)


class FieldNotFoundError(ResourceNotFoundError):
    def __init__(self, field_id: Any):
        super().__init__("Field", field_id)


class AssessmentNotFoundError(ResourceNotFoundError):
    def __init__(self, assessment_id: Any):
        super().__init__("Assessment", assessment_id)


class DocumentNotFoundError(ResourceNotFoundError):
    def __init__(self, document_id: Any):
        super().__init__("Document", document_id)


class OrderNotFoundError(ResourceNotFoundError):
    def __init__(self, order_id: Any):
        super().__init__("Order", order_id)


# ============================================
# Validation Errors (422-type)
# ============================================

class ValidationError(CsystemError):
    """Input validation failed"""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class UnknownFieldTypeError(ValidationError):
    """Field type is not part of the catalog"""

    def __init__(self, field_type: str):
        super().__init__(f"Unknown field type '{field_type}'", field="field_type")
        self.code = "UNKNOWN_FIELD_TYPE"
        self.details["field_type"] = field_type


class MissingOptionsError(ValidationError):
    """Selection field saved without any option"""

    def __init__(self, field_type: str):
        super().__init__(f"Field type '{field_type}' requires at least one option", field="options")
        self.code = "OPTIONS_REQUIRED"


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(CsystemError):
    """Request is valid but collides with existing state"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self, email: str):
        super().__init__("Email already registered", code="EMAIL_EXISTS", details={"email": email})


class JoinRequestConflictError(ConflictError):
    def __init__(self, message: str, reason: str):
        super().__init__(message, code="JOIN_CONFLICT", details={"reason": reason})


class DuplicateFieldNameError(ConflictError):
    def __init__(self, field_name: str):
        super().__init__(
            f"A field named '{field_name}' already exists in this module",
            code="DUPLICATE_FIELD_NAME",
            details={"field_name": field_name}
        )
