"""
Core types for brandkit (PUBLIC).

This module defines the fundamental data structures used throughout the package:
- HierarchyLevel: Ordered override levels (system -> contextual)
- BrandingLayer: A scoped, prioritized bundle of raw token values
- BrandingContext: The tenant context a resolution is computed for
- ResolvedToken / ResolvedBranding: The output of one resolution
- Snapshot: A frozen, checksummed record of one resolution
- SnapshotVerification: The result of checking a snapshot's integrity

All records are frozen. Mappings are exposed through read-only views and
sequences are stored as tuples, so a result can be shared between threads
without copying.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

from brandkit._time import format_timestamp, parse_timestamp

# Closed set of raw token value types. Only strings may be semantic references.
TokenValue = Union[str, int, float, bool]
TOKEN_VALUE_TYPES = (str, int, float, bool)


class HierarchyLevel(str, Enum):
    """Override levels, least to most specific. Later levels win."""

    SYSTEM = "system"
    PARTNER = "partner"
    TENANT = "tenant"
    SUITE = "suite"
    COMPONENT = "component"
    CONTEXTUAL = "contextual"

    @property
    def priority(self) -> int:
        """Position of this level in :data:`HIERARCHY_ORDER`."""
        return HIERARCHY_ORDER.index(self)


HIERARCHY_ORDER: tuple[HierarchyLevel, ...] = tuple(HierarchyLevel)


def hierarchy_priority(level: HierarchyLevel | str) -> int:
    """Return the sort position of *level* (``system`` is 0)."""
    return HierarchyLevel(level).priority


def _freeze_tokens(tokens: Mapping[str, Any]) -> Mapping[str, TokenValue]:
    frozen: dict[str, TokenValue] = {}
    for key, value in tokens.items():
        if not isinstance(key, str):
            raise TypeError(f"Token keys must be strings, got {type(key).__name__}")
        if not isinstance(value, TOKEN_VALUE_TYPES):
            raise TypeError(
                f"Token {key!r} has unsupported value type {type(value).__name__}; "
                f"expected str, int, float or bool"
            )
        frozen[key] = value
    return MappingProxyType(frozen)


def _normalize_timestamp(value: str | datetime | None) -> str | None:
    """Keep strings verbatim (after checking they parse); render datetimes canonically."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return format_timestamp(value)
    parse_timestamp(value)
    return value


@dataclass(frozen=True)
class BrandingLayer:
    """
    A named, prioritized bundle of tokens scoped to hierarchy dimensions.

    Attributes:
        id: Layer identifier
        definition_id: Identifier of the branding definition it was built from
        level: Hierarchy level (override precedence)
        priority: Tie-break within a level; higher wins
        tokens: Read-only mapping of token key to raw value
        enabled: Disabled layers never contribute
        valid_from: Inclusive lower bound of the validity window (ISO-8601)
        valid_until: Inclusive upper bound of the validity window (ISO-8601)
        tenant_id: Restrict to one tenant (unset means any tenant)
        partner_id: Restrict to one partner
        suite_id: Restrict to one suite
        component_id: Restrict to one component
    """

    id: str
    definition_id: str
    level: HierarchyLevel
    priority: int = 0
    tokens: Mapping[str, TokenValue] = field(default_factory=dict)
    enabled: bool = True
    valid_from: str | None = None
    valid_until: str | None = None
    tenant_id: str | None = None
    partner_id: str | None = None
    suite_id: str | None = None
    component_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", HierarchyLevel(self.level))
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise TypeError(f"Layer priority must be an int, got {self.priority!r}")
        object.__setattr__(self, "tokens", _freeze_tokens(self.tokens))
        object.__setattr__(self, "valid_from", _normalize_timestamp(self.valid_from))
        object.__setattr__(self, "valid_until", _normalize_timestamp(self.valid_until))


@dataclass(frozen=True)
class BrandingContext:
    """
    The request a resolution is computed for.

    Attributes:
        tenant_id: The resolving tenant (mandatory)
        partner_id: Optional partner scope
        suite_id: Optional suite scope
        component_id: Optional component scope
        evaluation_time: ISO-8601 timestamp the resolution is evaluated at;
            required by every operation that resolves
        locale: Optional locale tag
    """

    tenant_id: str
    partner_id: str | None = None
    suite_id: str | None = None
    component_id: str | None = None
    evaluation_time: str | None = None
    locale: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tenant_id, str) or not self.tenant_id:
            raise ValueError("BrandingContext.tenant_id must be a non-empty string")
        object.__setattr__(
            self, "evaluation_time", _normalize_timestamp(self.evaluation_time)
        )


@dataclass(frozen=True)
class ResolvedToken:
    """
    One resolved token.

    Attributes:
        key: Token key
        value: Final value after semantic dereferencing
        source_layer: Id of the layer that contributed the value
        source_level: Hierarchy level of that layer
        resolved_from: Key the value was dereferenced from, if it was a reference
    """

    key: str
    value: TokenValue
    source_layer: str
    source_level: HierarchyLevel
    resolved_from: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_level", HierarchyLevel(self.source_level))


@dataclass(frozen=True)
class ResolvedBranding:
    """
    The full result of one resolution.

    ``tokens`` is held in sorted key order so serialized output is stable.
    """

    context_hash: str
    tenant_id: str
    tokens: Mapping[str, ResolvedToken]
    applied_layers: tuple[str, ...]
    resolved_at: str

    def __post_init__(self) -> None:
        ordered = {key: self.tokens[key] for key in sorted(self.tokens)}
        object.__setattr__(self, "tokens", MappingProxyType(ordered))
        object.__setattr__(self, "applied_layers", tuple(self.applied_layers))

    def values(self) -> dict[str, TokenValue]:
        """Return a fresh ``{key: value}`` dict of the resolved tokens."""
        return {key: token.value for key, token in self.tokens.items()}


@dataclass(frozen=True)
class Snapshot:
    """
    A self-describing capture of one resolution.

    The checksum covers ``version``, ``context``, ``resolved``, ``layer_ids``
    and ``generated_at``. It does not cover ``snapshot_id``, ``checksum`` or
    ``expires_at``.
    """

    snapshot_id: str
    version: str
    context: BrandingContext
    resolved: ResolvedBranding
    layer_ids: tuple[str, ...]
    generated_at: str
    checksum: str
    expires_at: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "layer_ids", tuple(self.layer_ids))


class IssueCode(str, Enum):
    """Kinds of problem snapshot verification can report."""

    SCHEMA = "schema"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    SNAPSHOT_ID_MISMATCH = "snapshot_id_mismatch"
    INVALID_EVALUATION_TIME = "invalid_evaluation_time"
    EXPIRED = "expired"


@dataclass(frozen=True)
class VerificationIssue:
    """A single problem found while verifying a snapshot."""

    code: IssueCode
    message: str


@dataclass(frozen=True)
class SnapshotVerification:
    """
    Outcome of verifying a snapshot. Every problem found is listed.

    Attributes:
        issues: Structured problems, in the order the checks ran
    """

    issues: tuple[VerificationIssue, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(self.issues))

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> tuple[str, ...]:
        """Human-readable messages, one per issue."""
        return tuple(issue.message for issue in self.issues)

    def has(self, code: IssueCode) -> bool:
        return any(issue.code == code for issue in self.issues)
