"""
Exception hierarchy for brandkit (PUBLIC).

Every error carries a stable ``code`` string so callers can branch on the
kind of failure without matching message text.

- ConfigurationError: bad input contract or bad settings (fatal)
- CrossTenantAccessError: a tenant-scoped layer owned by another tenant
- SnapshotTenantMismatchError: snapshot replayed for the wrong tenant
- InvalidSnapshotError: verification found one or more integrity problems
- TemporalViolationError: replay before generation or after expiry
- SnapshotFormatError: a wire payload could not be loaded
"""

from __future__ import annotations

from collections.abc import Iterable


class BrandingError(Exception):
    """Base class for all brandkit errors."""

    code = "BRANDING_ERROR"


class ConfigurationError(BrandingError):
    """Raised when an input contract or a configuration value is violated."""

    code = "CONFIGURATION_ERROR"


class MissingEvaluationTimeError(ConfigurationError):
    """Raised when a context has no evaluation time; wall-clock time is never used."""

    code = "MISSING_EVALUATION_TIME"

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"evaluation_time is required in context for deterministic {operation}"
        )
        self.operation = operation


class CrossTenantAccessError(BrandingError):
    """
    Raised when a tenant-level layer belongs to a tenant other than the context's.

    Attributes:
        requested_tenant_id: The tenant that owns the offending layer.
        actual_tenant_id: The tenant of the resolving context.
    """

    code = "CROSS_TENANT_ACCESS"

    def __init__(self, requested_tenant_id: str, actual_tenant_id: str) -> None:
        super().__init__(
            f"Cross-tenant access violation: attempted to access tenant "
            f"{requested_tenant_id!r} from context of tenant {actual_tenant_id!r}"
        )
        self.requested_tenant_id = requested_tenant_id
        self.actual_tenant_id = actual_tenant_id


class SnapshotTenantMismatchError(BrandingError):
    """
    Raised when a snapshot is replayed on behalf of a different tenant.

    Attributes:
        snapshot_tenant_id: The tenant embedded in the snapshot context.
        context_tenant_id: The tenant the caller asked for.
    """

    code = "SNAPSHOT_TENANT_MISMATCH"

    def __init__(self, snapshot_tenant_id: str, context_tenant_id: str) -> None:
        super().__init__(
            f"Snapshot tenant mismatch: snapshot belongs to tenant "
            f"{snapshot_tenant_id!r} but context specifies tenant {context_tenant_id!r}"
        )
        self.snapshot_tenant_id = snapshot_tenant_id
        self.context_tenant_id = context_tenant_id


class InvalidSnapshotError(BrandingError):
    """Raised by replay when verification reports problems; ``errors`` lists them all."""

    code = "INVALID_SNAPSHOT"

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = tuple(errors)
        super().__init__(f"Invalid snapshot: {', '.join(self.errors)}")


class TemporalViolationError(BrandingError):
    """Raised when a snapshot is evaluated outside its [generated_at, expires_at] window."""

    code = "TEMPORAL_VIOLATION"


class SnapshotFormatError(BrandingError):
    """Raised when a snapshot payload does not have the expected shape."""

    code = "SNAPSHOT_FORMAT"

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = tuple(problems)
        super().__init__(f"Malformed snapshot: {'; '.join(self.problems)}")
