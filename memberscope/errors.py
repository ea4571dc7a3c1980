"""
memberscope Errors
==================

Typed failures raised across memberscope.

The name/comparison engine only ever raises MalformedInputError. Everything
that can go wrong while talking to the directory derives from DirectoryError,
so callers always receive a distinguishable failure instead of an empty
result.
"""

from typing import Optional


class MemberscopeError(Exception):
    """Base class for all memberscope errors."""


class MalformedInputError(MemberscopeError, TypeError):
    """A distinguished name was not a string-like value."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Expected a distinguished name string, got {type(value).__name__}"
        )


class InvalidSearchFieldError(MemberscopeError, ValueError):
    """An identity lookup was requested on an unsupported attribute."""

    def __init__(self, search_field: str, allowed):
        self.search_field = search_field
        self.allowed = tuple(allowed)
        super().__init__(
            f"Unsupported search field '{search_field}' "
            f"(expected one of: {', '.join(self.allowed)})"
        )


class SameIdentityError(MemberscopeError):
    """Both comparison subjects resolved to the same directory object."""

    def __init__(self, distinguished_name: str):
        self.distinguished_name = distinguished_name
        super().__init__(
            f"Both identities resolve to the same object: {distinguished_name}"
        )


class DirectoryError(MemberscopeError):
    """Base class for failures at the directory boundary."""


class IdentityNotFoundError(DirectoryError):
    """No identity matched a resolution query."""

    def __init__(self, search_field: str, value: str):
        self.search_field = search_field
        self.value = value
        super().__init__(f"No identity found where {search_field}={value}")


class GroupNotFoundError(DirectoryError):
    """No group matched a name or path."""

    def __init__(self, name_or_path: str):
        self.name_or_path = name_or_path
        super().__init__(f"No group found for '{name_or_path}'")


class AmbiguousIdentityError(DirectoryError):
    """More than one object matched a resolution query."""

    def __init__(self, search_field: str, value: str, count: int):
        self.search_field = search_field
        self.value = value
        self.count = count
        super().__init__(
            f"{count} objects match {search_field}={value}; refine the query"
        )


class UnreachableServerError(DirectoryError):
    """The directory server could not be contacted or bound."""

    def __init__(self, server: str, reason: Optional[str] = None):
        self.server = server
        self.reason = reason
        message = f"Could not reach directory server {server}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
