"""
Error types for index versioning.

This module defines the exceptions raised by the version registry and
version state manager:
- VersioningError: Base exception
- InvalidVersionError: Referenced version number does not exist
- AllocationError: Could not allocate a new version
- VersionPersistError: New version could not be persisted
- ActivationError: Persisting an activation failed
- UnresolvableTypeError: Slug is not a registered indexable type

Invariants:
    - All errors inherit from VersioningError
    - Every error carries a stable code for operator tooling
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VersioningError(Exception):
    """Base exception for all index versioning errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    default_code = "versioning-error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


class InvalidVersionError(VersioningError):
    """The requested index version does not exist for the type."""

    default_code = "invalid-index-version"

    def __init__(self, message: str, slug: str, version_number: int) -> None:
        super().__init__(
            message,
            details={"slug": slug, "version_number": version_number},
        )
        self.slug = slug
        self.version_number = version_number


class AllocationError(VersioningError):
    """A new index version could not be allocated.

    Raised when:
    - The next version number cannot be determined
    - The new version cannot be persisted (VersionPersistError)
    """

    default_code = "unable-to-get-next-version"

    def __init__(self, message: str, slug: str) -> None:
        super().__init__(message, details={"slug": slug})
        self.slug = slug


class VersionPersistError(AllocationError):
    """The new version set could not be written to the settings store."""

    default_code = "persist-failure"


class ActivationError(VersioningError):
    """Persisting an activation failed; the previous active version stands."""

    default_code = "failed-activating-version"

    def __init__(self, message: str, slug: str, version_number: int) -> None:
        super().__init__(
            message,
            details={"slug": slug, "version_number": version_number},
        )
        self.slug = slug
        self.version_number = version_number


class UnresolvableTypeError(VersioningError):
    """The slug does not name a registered indexable type."""

    default_code = "unresolvable-type"

    def __init__(self, slug: str) -> None:
        super().__init__(f"Unknown indexable type '{slug}'", details={"slug": slug})
        self.slug = slug
