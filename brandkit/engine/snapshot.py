"""
Snapshot subsystem: freeze, verify and replay one resolution.

A snapshot embeds the context, the resolved branding and the ids of every
candidate layer, plus two hash-derived fields:

- checksum: digest of the body (everything except snapshotId, checksum
  and expiresAt)
- snapshotId: short digest of (context, generatedAt)

Verification recomputes both from the snapshot alone, so a snapshot can be
checked and replayed offline without the original layers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from brandkit._canonical import CanonicalizeError
from brandkit._ids import checksum, snapshot_id
from brandkit._time import format_timestamp, parse_timestamp
from brandkit.config import BrandkitConfig
from brandkit.engine.resolver import resolve_branding
from brandkit.errors import (
    InvalidSnapshotError,
    MissingEvaluationTimeError,
    SnapshotTenantMismatchError,
    TemporalViolationError,
)
from brandkit.schema import (
    SNAPSHOT_VERSION,
    dump_context,
    dump_resolved_branding,
    dump_snapshot,
    load_snapshot,
    snapshot_body,
    validate_snapshot_payload,
)
from brandkit.types import (
    BrandingContext,
    BrandingLayer,
    IssueCode,
    ResolvedBranding,
    Snapshot,
    SnapshotVerification,
    VerificationIssue,
)

logger = logging.getLogger(__name__)


def generate_branding_snapshot(
    context: BrandingContext,
    layers: Iterable[BrandingLayer],
    *,
    ttl: timedelta | None = None,
    config: BrandkitConfig | None = None,
) -> Snapshot:
    """
    Resolve *layers* for *context* and capture the result as a snapshot.

    ``generated_at`` is the context's evaluation time, so generating twice
    from the same inputs yields the same id, checksum and timestamp.

    Args:
        context: The tenant context; ``evaluation_time`` is required.
        layers: Candidate layers. All of their ids are recorded, applied or not.
        ttl: Lifetime after which the snapshot expires. Falls back to
            ``config.snapshot_ttl``; ``None`` there means no expiry.
        config: Settings passed through to resolution.

    Raises:
        MissingEvaluationTimeError: If the context has no evaluation time.
        CrossTenantAccessError: Propagated from resolution.
    """
    if not context.evaluation_time:
        raise MissingEvaluationTimeError("snapshot generation")

    settings = config or BrandkitConfig.default()
    layers = tuple(layers)
    generated_at = context.evaluation_time

    resolved = resolve_branding(context, layers, config=settings)
    layer_ids = tuple(layer.id for layer in layers)
    context_data = dump_context(context)

    body = {
        "version": SNAPSHOT_VERSION,
        "context": context_data,
        "resolved": dump_resolved_branding(resolved),
        "layerIds": list(layer_ids),
        "generatedAt": generated_at,
    }

    lifetime = ttl if ttl is not None else settings.snapshot_ttl
    expires_at = None
    if lifetime is not None:
        expires_at = format_timestamp(parse_timestamp(generated_at) + lifetime)

    snapshot = Snapshot(
        snapshot_id=snapshot_id(context_data, generated_at),
        version=SNAPSHOT_VERSION,
        context=context,
        resolved=resolved,
        layer_ids=layer_ids,
        generated_at=generated_at,
        expires_at=expires_at,
        checksum=checksum(body),
    )
    logger.debug(
        f"Generated snapshot {snapshot.snapshot_id} for tenant {context.tenant_id} "
        f"({len(resolved.tokens)} tokens)"
    )
    return snapshot


def _as_payload(snapshot: Snapshot | Mapping[str, Any]) -> Any:
    if isinstance(snapshot, Snapshot):
        return dump_snapshot(snapshot)
    return snapshot


def verify_branding_snapshot(
    snapshot: Snapshot | Mapping[str, Any],
    evaluation_time: str | datetime | None = None,
) -> SnapshotVerification:
    """
    Check a snapshot's integrity. Never raises.

    Checks run in order and all of them are reported:

    1. Structure. On failure this is the only issue returned, since nothing
       else can be computed.
    2. Checksum over the body.
    3. Snapshot id from (context, generatedAt).
    4. Expiry, when the snapshot has ``expiresAt`` and *evaluation_time* is given.

    Args:
        snapshot: A Snapshot, or its wire dict (e.g. straight from ``json.loads``).
        evaluation_time: The time the snapshot is being evaluated at.

    Returns:
        A SnapshotVerification listing every issue found.
    """
    try:
        payload = _as_payload(snapshot)
    except (AttributeError, TypeError) as e:
        # A Snapshot object whose fields were replaced with the wrong types
        problems = [f"snapshot: cannot serialize ({e})"]
    else:
        problems = validate_snapshot_payload(payload)
    if problems:
        issue = VerificationIssue(
            IssueCode.SCHEMA, f"Schema validation failed: {'; '.join(problems)}"
        )
        logger.warning(f"Snapshot rejected: {issue.message}")
        return SnapshotVerification(issues=(issue,))

    try:
        computed_checksum = checksum(snapshot_body(payload))
        expected_id = snapshot_id(payload["context"], payload["generatedAt"])
    except CanonicalizeError as e:
        issue = VerificationIssue(IssueCode.SCHEMA, f"Schema validation failed: {e}")
        logger.warning(f"Snapshot rejected: {issue.message}")
        return SnapshotVerification(issues=(issue,))

    issues: list[VerificationIssue] = []

    if computed_checksum != payload["checksum"]:
        issues.append(
            VerificationIssue(
                IssueCode.CHECKSUM_MISMATCH,
                "Checksum mismatch: snapshot has been tampered with",
            )
        )

    if expected_id != payload["snapshotId"]:
        issues.append(
            VerificationIssue(
                IssueCode.SNAPSHOT_ID_MISMATCH,
                "Snapshot ID mismatch: snapshot metadata has been modified",
            )
        )

    evaluated_at: datetime | None = None
    if evaluation_time is not None:
        try:
            evaluated_at = parse_timestamp(evaluation_time)
        except (TypeError, ValueError):
            issues.append(
                VerificationIssue(
                    IssueCode.INVALID_EVALUATION_TIME,
                    f"Invalid evaluation time: {evaluation_time!r}",
                )
            )

    expires_at = payload.get("expiresAt")
    if expires_at is not None and evaluated_at is not None:
        if evaluated_at > parse_timestamp(expires_at):
            issues.append(VerificationIssue(IssueCode.EXPIRED, "Snapshot has expired"))

    result = SnapshotVerification(issues=tuple(issues))
    if not result.valid:
        logger.warning(
            f"Snapshot {payload['snapshotId']} failed verification: {', '.join(result.errors)}"
        )
    return result


def resolve_from_snapshot(
    snapshot: Snapshot | Mapping[str, Any],
    evaluation_time: str | datetime,
    context_tenant_id: str | None = None,
) -> ResolvedBranding:
    """
    Replay a snapshot's resolution without the original layers.

    Args:
        snapshot: A Snapshot, or its wire dict.
        evaluation_time: When the snapshot is being used. Must not precede
            ``generated_at`` nor pass ``expires_at``.
        context_tenant_id: When given, the tenant the caller is acting for.

    Returns:
        The embedded ResolvedBranding, unchanged.

    Raises:
        MissingEvaluationTimeError: If *evaluation_time* is missing.
        InvalidSnapshotError: If verification reports any issue.
        SnapshotTenantMismatchError: If the snapshot belongs to another tenant.
        TemporalViolationError: If the evaluation time is outside the
            snapshot's validity window.
    """
    if not evaluation_time:
        raise MissingEvaluationTimeError("snapshot replay")

    verification = verify_branding_snapshot(snapshot, evaluation_time)
    if not verification.valid:
        raise InvalidSnapshotError(verification.errors)

    loaded = snapshot if isinstance(snapshot, Snapshot) else load_snapshot(snapshot)

    if context_tenant_id and context_tenant_id != loaded.context.tenant_id:
        raise SnapshotTenantMismatchError(loaded.context.tenant_id, context_tenant_id)

    evaluated_at = parse_timestamp(evaluation_time)

    if evaluated_at < parse_timestamp(loaded.generated_at):
        raise TemporalViolationError(
            "Evaluation time cannot be before snapshot generation time"
        )

    if loaded.expires_at is not None and evaluated_at > parse_timestamp(loaded.expires_at):
        raise TemporalViolationError("Snapshot has expired for the given evaluation time")

    return loaded.resolved
