"""
Resolution engine: merge layers into one token map for a context.

Layers are filtered to those active at the evaluation time and applicable
to the context's scope, ordered by (hierarchy level, priority), and merged
last-writer-wins. Semantic references (``"{key}"`` values) are then
dereferenced in bounded passes.

The result is a pure function of (context, layers): the evaluation time
always comes from the context, never from the wall clock.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from brandkit._ids import fingerprint
from brandkit._time import format_timestamp, parse_timestamp
from brandkit.config import DEFAULT_MAX_REFERENCE_PASSES, BrandkitConfig
from brandkit.errors import CrossTenantAccessError, MissingEvaluationTimeError
from brandkit.schema import dump_context
from brandkit.tokens import parse_reference
from brandkit.types import (
    BrandingContext,
    BrandingLayer,
    HierarchyLevel,
    ResolvedBranding,
    ResolvedToken,
)

logger = logging.getLogger(__name__)

# Scope fields checked against the context, as (layer attribute, context attribute)
_SCOPE_FIELDS = (
    ("tenant_id", "tenant_id"),
    ("partner_id", "partner_id"),
    ("suite_id", "suite_id"),
    ("component_id", "component_id"),
)


def is_layer_active(layer: BrandingLayer, evaluation_time: datetime) -> bool:
    """True if *layer* is enabled and its validity window (inclusive) contains the time."""
    if not layer.enabled:
        return False

    if layer.valid_from is not None and evaluation_time < parse_timestamp(layer.valid_from):
        return False

    if layer.valid_until is not None and evaluation_time > parse_timestamp(layer.valid_until):
        return False

    return True


def is_layer_applicable(layer: BrandingLayer, context: BrandingContext) -> bool:
    """True if every scope field set on *layer* matches the context; unset fields match anything."""
    for layer_attr, context_attr in _SCOPE_FIELDS:
        scope = getattr(layer, layer_attr)
        if scope is not None and scope != getattr(context, context_attr):
            return False
    return True


def validate_tenant_access(layer: BrandingLayer, context: BrandingContext) -> None:
    """
    Enforce tenant ownership of tenant-level layers.

    Raises:
        CrossTenantAccessError: If a ``tenant`` layer names another tenant.
    """
    if (
        layer.level is HierarchyLevel.TENANT
        and layer.tenant_id is not None
        and layer.tenant_id != context.tenant_id
    ):
        raise CrossTenantAccessError(layer.tenant_id, context.tenant_id)


def sort_layers(layers: Iterable[BrandingLayer]) -> list[BrandingLayer]:
    """Order layers by hierarchy level, then priority (both ascending). Stable for ties."""
    return sorted(layers, key=lambda layer: (layer.level.priority, layer.priority))


def resolve_semantic_tokens(
    tokens: dict[str, ResolvedToken],
    max_passes: int = DEFAULT_MAX_REFERENCE_PASSES,
) -> dict[str, ResolvedToken]:
    """
    Dereference ``{key}`` values against the other resolved tokens.

    Each pass substitutes every reference whose target exists and holds a
    different value. Passes repeat until one makes no substitution or
    *max_passes* is reached; whatever is still bracketed then (cycles,
    missing targets, very long chains) is left as is.

    ``resolved_from`` records the reference key of the latest substitution.
    When a referrer is visited before its target within a pass, that is the
    key one hop further down the chain.
    """
    resolved = dict(tokens)

    for _ in range(max_passes):
        changed = False

        for key in list(resolved):
            token = resolved[key]
            reference = parse_reference(token.value)
            if reference is None:
                continue

            target = resolved.get(reference)
            if target is not None and target.value != token.value:
                resolved[key] = ResolvedToken(
                    key=token.key,
                    value=target.value,
                    source_layer=token.source_layer,
                    source_level=token.source_level,
                    resolved_from=reference,
                )
                changed = True

        if not changed:
            break
    else:
        unresolved = sorted(
            key for key, token in resolved.items() if parse_reference(token.value) is not None
        )
        if unresolved:
            logger.warning(
                f"Semantic token resolution stopped after {max_passes} passes; "
                f"unresolved references: {', '.join(unresolved)}"
            )

    return resolved


def resolve_branding(
    context: BrandingContext,
    layers: Sequence[BrandingLayer],
    *,
    config: BrandkitConfig | None = None,
) -> ResolvedBranding:
    """
    Resolve *layers* into a single token map for *context*.

    Args:
        context: The tenant context; ``evaluation_time`` is required.
        layers: Candidate layers. Treated as read-only.
        config: Settings (reference pass ceiling). Defaults apply when omitted.

    Returns:
        A frozen ResolvedBranding with tokens in sorted key order.

    Raises:
        MissingEvaluationTimeError: If the context has no evaluation time.
        CrossTenantAccessError: If a tenant-level layer belongs to another tenant.

    Example:
        >>> context = BrandingContext(tenant_id="t-1", evaluation_time="2024-01-15T12:00:00Z")
        >>> layer = BrandingLayer(id="l-1", definition_id="d-1", level="system",
        ...                       tokens={"color.primary": "#000000"})
        >>> resolve_branding(context, [layer]).tokens["color.primary"].value
        '#000000'
    """
    if not context.evaluation_time:
        raise MissingEvaluationTimeError("resolution")

    settings = config or BrandkitConfig.default()
    evaluation_time = parse_timestamp(context.evaluation_time)

    candidates = [
        layer
        for layer in layers
        if is_layer_active(layer, evaluation_time) and is_layer_applicable(layer, context)
    ]

    tokens: dict[str, ResolvedToken] = {}
    applied_layers: list[str] = []

    for layer in sort_layers(candidates):
        # Filtering already drops foreign tenant layers; this check is the
        # isolation boundary and must stay fatal.
        validate_tenant_access(layer, context)
        applied_layers.append(layer.id)

        for key, value in layer.tokens.items():
            tokens[key] = ResolvedToken(
                key=key,
                value=value,
                source_layer=layer.id,
                source_level=layer.level,
            )

    resolved_tokens = resolve_semantic_tokens(tokens, settings.max_reference_passes)

    logger.debug(
        f"Resolved {len(resolved_tokens)} tokens for tenant {context.tenant_id} "
        f"from {len(applied_layers)}/{len(layers)} layers"
    )

    return ResolvedBranding(
        context_hash=fingerprint(dump_context(context)),
        tenant_id=context.tenant_id,
        tokens=resolved_tokens,
        applied_layers=tuple(applied_layers),
        resolved_at=format_timestamp(evaluation_time),
    )
