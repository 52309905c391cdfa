"""Custom exception hierarchy for Lectern."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    VARIANT_NOT_FOUND = "VARIANT_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    CONTENT_TYPE_NOT_FOUND = "CONTENT_TYPE_NOT_FOUND"
    SETTING_NOT_FOUND = "SETTING_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SNAPSHOT_SCHEMA_MISMATCH = "SNAPSHOT_SCHEMA_MISMATCH"

    # Workflow errors
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"

    # Concurrency errors
    CONFLICT = "CONFLICT"

    # Persistence errors
    DRIVER_ERROR = "DRIVER_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LecternException(Exception):
    """
    Base exception for all Lectern errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(LecternException):
    """Base class for every 404-equivalent lookup failure."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DOCUMENT_NOT_FOUND,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, status_code=404, details=details)


class DocumentNotFoundError(NotFoundError):
    """No variant of any locale exists for the document."""

    def __init__(self, document_id: str):
        super().__init__(
            f"Document not found: {document_id}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            details={"document_id": document_id},
        )


class VariantNotFoundError(NotFoundError):
    """No variant exists for the (document, locale, status) key."""

    def __init__(self, document_id: str, locale: str, status: Optional[str] = None):
        kind = f"{status} variant" if status else "variant"
        super().__init__(
            f"No {kind} for document {document_id} in locale '{locale}'",
            ErrorCode.VARIANT_NOT_FOUND,
            details={"document_id": document_id, "locale": locale, "status": status},
        )


class VersionNotFoundError(NotFoundError):
    """History entry not found for the (document, locale, version) key."""

    def __init__(self, document_id: str, locale: str, version_id: Optional[int] = None):
        label = f"version {version_id}" if version_id is not None else "any version"
        super().__init__(
            f"Document {document_id} has no {label} in locale '{locale}'",
            ErrorCode.VERSION_NOT_FOUND,
            details={"document_id": document_id, "locale": locale, "version_id": version_id},
        )


class ContentTypeNotFoundError(NotFoundError):
    """Collection name is not registered."""

    def __init__(self, collection: str):
        super().__init__(
            f"Content type not registered: {collection}",
            ErrorCode.CONTENT_TYPE_NOT_FOUND,
            details={"collection": collection},
        )


class SettingNotFoundError(NotFoundError):
    """Setting key does not exist in the requested group."""

    def __init__(self, group: str, key: str):
        super().__init__(
            f"Setting not found: {group}.{key}",
            ErrorCode.SETTING_NOT_FOUND,
            details={"group": group, "key": key},
        )


class ValidationError(LecternException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[list] = None):
        details: Dict[str, Any] = {"field": field} if field else {}
        if errors:
            details["errors"] = errors
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class SnapshotSchemaError(LecternException):
    """A history snapshot no longer validates against the current content-type schema."""

    def __init__(self, collection: str, snapshot_version: int, current_version: int, errors: Optional[list] = None):
        super().__init__(
            f"Snapshot was written with schema v{snapshot_version} of '{collection}' "
            f"and does not validate against v{current_version}",
            ErrorCode.SNAPSHOT_SCHEMA_MISMATCH,
            status_code=409,
            details={
                "collection": collection,
                "snapshot_schema_version": snapshot_version,
                "current_schema_version": current_version,
                "errors": errors or [],
            },
        )


class ApprovalRequiredError(LecternException):
    """Publishing requires an approver but none was supplied."""

    def __init__(self, document_id: str, locale: str):
        super().__init__(
            "Publishing requires approval",
            ErrorCode.APPROVAL_REQUIRED,
            status_code=403,
            details={"document_id": document_id, "locale": locale},
        )


class ConflictError(LecternException):
    """Write conflicts with existing state or a concurrent modification."""

    def __init__(self, message: str = "Resource was modified by another writer", **details: Any):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class DriverError(LecternException):
    """Persistence driver operation failed."""

    def __init__(
        self,
        operation: str,
        document_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if document_id:
            details["document_id"] = document_id
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Persistence operation failed: {operation}",
            ErrorCode.DRIVER_ERROR,
            status_code=500,
            details=details
        )
