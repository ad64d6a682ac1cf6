"""
brandkit: Deterministic branding resolution with verifiable snapshots.

A resolution is a pure mapping from (BrandingContext, layers) to a
ResolvedBranding: layers are filtered by validity window and scope,
merged in hierarchy order (system < partner < tenant < suite < component
< contextual), and semantic ``{key}`` references are dereferenced.
A Snapshot freezes one resolution with a checksum and a content-derived
id so it can be verified and replayed offline.

Example:
    import brandkit

    context = brandkit.BrandingContext(
        tenant_id="tenant-1",
        evaluation_time="2024-01-15T12:00:00.000Z",
    )
    layers = [
        brandkit.BrandingLayer(
            id="base",
            definition_id="core",
            level="system",
            tokens={"color.blue.500": "#3B82F6", "color.primary": "{color.blue.500}"},
        ),
        brandkit.BrandingLayer(
            id="acme",
            definition_id="acme",
            level="tenant",
            tenant_id="tenant-1",
            tokens={"brand.name": "Acme"},
        ),
    ]

    resolved = brandkit.resolve_branding(context, layers)
    print(resolved.tokens["color.primary"].value)  # "#3B82F6"

    snapshot = brandkit.generate_branding_snapshot(context, layers)
    text = brandkit.dumps_snapshot(snapshot)

    # Later, without the layers:
    replayed = brandkit.resolve_from_snapshot(
        brandkit.loads_snapshot(text), "2024-01-16T00:00:00.000Z", "tenant-1"
    )
"""

__version__ = "0.1.0"

# Identity
from brandkit._canonical import CanonicalizeError, canonical
from brandkit._ids import SNAPSHOT_ID_LENGTH, checksum, fingerprint, snapshot_id

# Configuration
from brandkit.config import BrandkitConfig, configure_logging

# Display
from brandkit.display import display_branding, display_verification

# Engine
from brandkit.engine import (
    generate_branding_snapshot,
    resolve_branding,
    resolve_from_snapshot,
    verify_branding_snapshot,
)

# Errors
from brandkit.errors import (
    BrandingError,
    ConfigurationError,
    CrossTenantAccessError,
    InvalidSnapshotError,
    MissingEvaluationTimeError,
    SnapshotFormatError,
    SnapshotTenantMismatchError,
    TemporalViolationError,
)

# Wire schema
from brandkit.schema import (
    SNAPSHOT_VERSION,
    dump_snapshot,
    dumps_snapshot,
    load_snapshot,
    loads_snapshot,
    validate_snapshot_payload,
)

# Token definitions
from brandkit.tokens import (
    BehavioralToken,
    BrandConfig,
    BrandingDefinition,
    BrandToken,
    PrimitiveToken,
    SemanticToken,
    create_brand_config,
    layer_from_definition,
)

# Types (public)
from brandkit.types import (
    HIERARCHY_ORDER,
    BrandingContext,
    BrandingLayer,
    HierarchyLevel,
    IssueCode,
    ResolvedBranding,
    ResolvedToken,
    Snapshot,
    SnapshotVerification,
    TokenValue,
    VerificationIssue,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "HierarchyLevel",
    "HIERARCHY_ORDER",
    "TokenValue",
    "BrandingLayer",
    "BrandingContext",
    "ResolvedToken",
    "ResolvedBranding",
    "Snapshot",
    "SnapshotVerification",
    "VerificationIssue",
    "IssueCode",
    # Engine
    "resolve_branding",
    "generate_branding_snapshot",
    "verify_branding_snapshot",
    "resolve_from_snapshot",
    # Wire schema
    "SNAPSHOT_VERSION",
    "dump_snapshot",
    "load_snapshot",
    "dumps_snapshot",
    "loads_snapshot",
    "validate_snapshot_payload",
    # Token definitions
    "PrimitiveToken",
    "SemanticToken",
    "BrandToken",
    "BehavioralToken",
    "BrandingDefinition",
    "layer_from_definition",
    "BrandConfig",
    "create_brand_config",
    # Errors
    "BrandingError",
    "ConfigurationError",
    "MissingEvaluationTimeError",
    "CrossTenantAccessError",
    "SnapshotTenantMismatchError",
    "InvalidSnapshotError",
    "TemporalViolationError",
    "SnapshotFormatError",
    # Configuration
    "BrandkitConfig",
    "configure_logging",
    # Display
    "display_branding",
    "display_verification",
    # Identity
    "canonical",
    "CanonicalizeError",
    "fingerprint",
    "snapshot_id",
    "checksum",
    "SNAPSHOT_ID_LENGTH",
]
