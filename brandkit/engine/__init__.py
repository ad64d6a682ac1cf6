"""
Resolution engine and snapshot subsystem.

- resolver: filter, order and merge layers; dereference semantic tokens
- snapshot: generate, verify and replay snapshots of a resolution
"""

from brandkit.engine.resolver import (
    is_layer_active,
    is_layer_applicable,
    resolve_branding,
    resolve_semantic_tokens,
    sort_layers,
    validate_tenant_access,
)
from brandkit.engine.snapshot import (
    generate_branding_snapshot,
    resolve_from_snapshot,
    verify_branding_snapshot,
)

__all__ = [
    "resolve_branding",
    "resolve_semantic_tokens",
    "is_layer_active",
    "is_layer_applicable",
    "sort_layers",
    "validate_tenant_access",
    "generate_branding_snapshot",
    "verify_branding_snapshot",
    "resolve_from_snapshot",
]
