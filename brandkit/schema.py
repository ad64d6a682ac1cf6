"""
Wire schema for snapshots and their parts.

This module provides:
- SNAPSHOT_VERSION constant for the snapshot format
- dump_* functions producing JSON-ready dicts (camelCase keys)
- load_* functions rebuilding the frozen types from those dicts
- validate_snapshot_payload, which lists structural problems without raising
- dumps_snapshot / loads_snapshot for the JSON text form

Optional fields that are unset are omitted from the wire form rather than
written as null. Hashes are computed over these dicts, so the omission is
what keeps a JSON round trip byte-stable.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from brandkit._time import is_timestamp
from brandkit.errors import SnapshotFormatError
from brandkit.types import (
    HIERARCHY_ORDER,
    TOKEN_VALUE_TYPES,
    BrandingContext,
    BrandingLayer,
    ResolvedBranding,
    ResolvedToken,
    Snapshot,
)

SNAPSHOT_VERSION = "1.0"

# Snapshot fields left out of the checksum
UNHASHED_FIELDS = frozenset({"snapshotId", "checksum", "expiresAt"})

_LEVEL_NAMES = frozenset(level.value for level in HIERARCHY_ORDER)


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# ---------------------------------------------------------------------------
# Dump
# ---------------------------------------------------------------------------


def dump_context(context: BrandingContext) -> dict[str, Any]:
    """Serialize a BrandingContext to its wire dict."""
    return _drop_none(
        {
            "tenantId": context.tenant_id,
            "partnerId": context.partner_id,
            "suiteId": context.suite_id,
            "componentId": context.component_id,
            "evaluationTime": context.evaluation_time,
            "locale": context.locale,
        }
    )


def dump_layer(layer: BrandingLayer) -> dict[str, Any]:
    """Serialize a BrandingLayer to its wire dict."""
    return _drop_none(
        {
            "id": layer.id,
            "definitionId": layer.definition_id,
            "level": layer.level.value,
            "priority": layer.priority,
            "tokens": dict(layer.tokens),
            "enabled": layer.enabled,
            "validFrom": layer.valid_from,
            "validUntil": layer.valid_until,
            "tenantId": layer.tenant_id,
            "partnerId": layer.partner_id,
            "suiteId": layer.suite_id,
            "componentId": layer.component_id,
        }
    )


def dump_resolved_token(token: ResolvedToken) -> dict[str, Any]:
    """Serialize a ResolvedToken to its wire dict."""
    return _drop_none(
        {
            "key": token.key,
            "value": token.value,
            "sourceLayer": token.source_layer,
            "sourceLevel": token.source_level.value,
            "resolvedFrom": token.resolved_from,
        }
    )


def dump_resolved_branding(resolved: ResolvedBranding) -> dict[str, Any]:
    """Serialize a ResolvedBranding to its wire dict."""
    return {
        "contextHash": resolved.context_hash,
        "tenantId": resolved.tenant_id,
        "tokens": {
            key: dump_resolved_token(token) for key, token in resolved.tokens.items()
        },
        "appliedLayers": list(resolved.applied_layers),
        "resolvedAt": resolved.resolved_at,
    }


def dump_snapshot(snapshot: Snapshot) -> dict[str, Any]:
    """Serialize a Snapshot to its wire dict."""
    return _drop_none(
        {
            "snapshotId": snapshot.snapshot_id,
            "version": snapshot.version,
            "context": dump_context(snapshot.context),
            "resolved": dump_resolved_branding(snapshot.resolved),
            "layerIds": list(snapshot.layer_ids),
            "generatedAt": snapshot.generated_at,
            "expiresAt": snapshot.expires_at,
            "checksum": snapshot.checksum,
        }
    )


def snapshot_body(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return the part of a snapshot payload the checksum covers."""
    return {key: value for key, value in payload.items() if key not in UNHASHED_FIELDS}


def dumps_snapshot(snapshot: Snapshot, indent: int | None = 2) -> str:
    """Serialize a Snapshot to JSON text."""
    return json.dumps(dump_snapshot(snapshot), indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


def load_context(data: Mapping[str, Any]) -> BrandingContext:
    """Load a BrandingContext from its wire dict."""
    return BrandingContext(
        tenant_id=data["tenantId"],
        partner_id=data.get("partnerId"),
        suite_id=data.get("suiteId"),
        component_id=data.get("componentId"),
        evaluation_time=data.get("evaluationTime"),
        locale=data.get("locale"),
    )


def load_layer(data: Mapping[str, Any]) -> BrandingLayer:
    """
    Load a BrandingLayer from its wire dict.

    ``priority`` defaults to 0 and ``enabled`` to True when missing.
    """
    return BrandingLayer(
        id=data["id"],
        definition_id=data["definitionId"],
        level=data["level"],
        priority=data.get("priority", 0),
        tokens=data.get("tokens", {}),
        enabled=data.get("enabled", True),
        valid_from=data.get("validFrom"),
        valid_until=data.get("validUntil"),
        tenant_id=data.get("tenantId"),
        partner_id=data.get("partnerId"),
        suite_id=data.get("suiteId"),
        component_id=data.get("componentId"),
    )


def load_resolved_token(data: Mapping[str, Any]) -> ResolvedToken:
    """Load a ResolvedToken from its wire dict."""
    return ResolvedToken(
        key=data["key"],
        value=data["value"],
        source_layer=data["sourceLayer"],
        source_level=data["sourceLevel"],
        resolved_from=data.get("resolvedFrom"),
    )


def load_resolved_branding(data: Mapping[str, Any]) -> ResolvedBranding:
    """Load a ResolvedBranding from its wire dict."""
    return ResolvedBranding(
        context_hash=data["contextHash"],
        tenant_id=data["tenantId"],
        tokens={
            key: load_resolved_token(token) for key, token in data["tokens"].items()
        },
        applied_layers=tuple(data["appliedLayers"]),
        resolved_at=data["resolvedAt"],
    )


def load_snapshot(data: Mapping[str, Any]) -> Snapshot:
    """
    Load a Snapshot from its wire dict.

    The payload is structurally validated first; integrity (checksum and id)
    is not checked here, see :func:`brandkit.verify_branding_snapshot`.

    Raises:
        SnapshotFormatError: If the payload does not have the snapshot shape.
    """
    problems = validate_snapshot_payload(data)
    if problems:
        raise SnapshotFormatError(problems)

    return Snapshot(
        snapshot_id=data["snapshotId"],
        version=data["version"],
        context=load_context(data["context"]),
        resolved=load_resolved_branding(data["resolved"]),
        layer_ids=tuple(data["layerIds"]),
        generated_at=data["generatedAt"],
        expires_at=data.get("expiresAt"),
        checksum=data["checksum"],
    )


def loads_snapshot(text: str | bytes) -> Snapshot:
    """
    Load a Snapshot from JSON text.

    Raises:
        SnapshotFormatError: If the text is not JSON or not a snapshot.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError([f"invalid JSON: {e}"]) from e
    return load_snapshot(data)


# ---------------------------------------------------------------------------
# Structural validation
# ---------------------------------------------------------------------------


def _check_str(
    data: Mapping[str, Any],
    key: str,
    path: str,
    problems: list[str],
    *,
    optional: bool = False,
) -> None:
    value = data.get(key)
    if value is None:
        if not optional:
            problems.append(f"{path}{key}: required")
        return
    if not isinstance(value, str):
        problems.append(f"{path}{key}: expected string, got {type(value).__name__}")


def _check_timestamp(
    data: Mapping[str, Any],
    key: str,
    path: str,
    problems: list[str],
    *,
    optional: bool = False,
) -> None:
    value = data.get(key)
    if value is None:
        if not optional:
            problems.append(f"{path}{key}: required")
        return
    if not is_timestamp(value):
        problems.append(f"{path}{key}: expected ISO-8601 timestamp, got {value!r}")


def _check_str_list(
    data: Mapping[str, Any], key: str, path: str, problems: list[str]
) -> None:
    value = data.get(key)
    if not isinstance(value, list):
        problems.append(f"{path}{key}: expected list of strings")
        return
    for i, item in enumerate(value):
        if not isinstance(item, str):
            problems.append(f"{path}{key}[{i}]: expected string, got {type(item).__name__}")


def _is_token_value(value: Any) -> bool:
    if not isinstance(value, TOKEN_VALUE_TYPES):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return True


def _validate_context(data: Any, problems: list[str]) -> None:
    if not isinstance(data, Mapping):
        problems.append("context: expected object")
        return
    _check_str(data, "tenantId", "context.", problems)
    if isinstance(data.get("tenantId"), str) and not data["tenantId"]:
        problems.append("context.tenantId: must not be empty")
    for key in ("partnerId", "suiteId", "componentId", "locale"):
        _check_str(data, key, "context.", problems, optional=True)
    _check_timestamp(data, "evaluationTime", "context.", problems, optional=True)


def _validate_resolved_token(path: str, data: Any, problems: list[str]) -> None:
    if not isinstance(data, Mapping):
        problems.append(f"{path}: expected object")
        return
    _check_str(data, "key", f"{path}.", problems)
    if "value" not in data:
        problems.append(f"{path}.value: required")
    elif not _is_token_value(data["value"]):
        problems.append(
            f"{path}.value: expected string, number or boolean, "
            f"got {type(data['value']).__name__}"
        )
    _check_str(data, "sourceLayer", f"{path}.", problems)
    level = data.get("sourceLevel")
    if level not in _LEVEL_NAMES:
        problems.append(f"{path}.sourceLevel: unknown hierarchy level {level!r}")
    _check_str(data, "resolvedFrom", f"{path}.", problems, optional=True)


def _validate_resolved(data: Any, problems: list[str]) -> None:
    if not isinstance(data, Mapping):
        problems.append("resolved: expected object")
        return
    _check_str(data, "contextHash", "resolved.", problems)
    _check_str(data, "tenantId", "resolved.", problems)
    tokens = data.get("tokens")
    if not isinstance(tokens, Mapping):
        problems.append("resolved.tokens: expected object")
    else:
        for key, token in tokens.items():
            _validate_resolved_token(f"resolved.tokens[{key!r}]", token, problems)
    _check_str_list(data, "appliedLayers", "resolved.", problems)
    _check_timestamp(data, "resolvedAt", "resolved.", problems)


def validate_snapshot_payload(data: Any) -> list[str]:
    """
    Check that *data* has the shape of a snapshot wire dict.

    Never raises; returns every problem found (empty list when valid).

    Args:
        data: A candidate payload, typically fresh from ``json.loads``.

    Returns:
        Human-readable problem descriptions, prefixed with the field path.
    """
    if not isinstance(data, Mapping):
        return [f"snapshot: expected object, got {type(data).__name__}"]

    problems: list[str] = []
    _check_str(data, "snapshotId", "", problems)
    if data.get("version") != SNAPSHOT_VERSION:
        problems.append(
            f"version: expected {SNAPSHOT_VERSION!r}, got {data.get('version')!r}"
        )
    _validate_context(data.get("context"), problems)
    _validate_resolved(data.get("resolved"), problems)
    _check_str_list(data, "layerIds", "", problems)
    _check_timestamp(data, "generatedAt", "", problems)
    _check_timestamp(data, "expiresAt", "", problems, optional=True)
    _check_str(data, "checksum", "", problems)
    return problems
