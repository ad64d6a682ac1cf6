"""Integration tests: generate, persist, reload and replay snapshots."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

import brandkit
from brandkit import (
    BehavioralToken,
    BrandingContext,
    BrandingDefinition,
    BrandToken,
    IssueCode,
    PrimitiveToken,
    SemanticToken,
    layer_from_definition,
)

TENANT = "tenant-acme"
EVALUATION_TIME = "2024-03-01T09:30:00.000Z"


@pytest.fixture
def layers():
    system = BrandingDefinition(
        id="core",
        name="Core",
        tokens=(
            PrimitiveToken("color.blue.500", "#3B82F6", "color"),
            PrimitiveToken("color.gray.900", "#111827", "color"),
            SemanticToken("color.primary", "color.blue.500", "accent"),
            SemanticToken("text.default", "color.gray.900", "text"),
            BehavioralToken("animation.enabled", True, "animation"),
        ),
    )
    tenant = BrandingDefinition(
        id="acme",
        name="Acme",
        tokens=(
            PrimitiveToken("color.acme.red", "#DC2626", "color"),
            SemanticToken("color.primary", "color.acme.red", "accent"),
            BrandToken("brand.name", "Acme Corp", "name"),
        ),
    )
    checkout = BrandingDefinition(
        id="checkout",
        name="Checkout",
        tokens=(BehavioralToken("animation.enabled", False, "animation"),),
    )
    return [
        layer_from_definition(system, layer_id="system-core", level="system"),
        layer_from_definition(
            tenant, layer_id="tenant-acme", level="tenant", tenant_id=TENANT
        ),
        layer_from_definition(
            checkout,
            layer_id="component-checkout",
            level="component",
            component_id="checkout",
        ),
        layer_from_definition(
            tenant,
            layer_id="tenant-acme-retired",
            level="tenant",
            tenant_id=TENANT,
            priority=10,
            valid_until="2024-01-01T00:00:00Z",
        ),
    ]


@pytest.fixture
def context():
    return BrandingContext(
        tenant_id=TENANT, component_id="checkout", evaluation_time=EVALUATION_TIME
    )


class TestOfflineReplay:
    """A snapshot written to disk replays without the layers."""

    def test_file_round_trip(self, tmp_path, context, layers):
        snapshot = brandkit.generate_branding_snapshot(
            context, layers, ttl=timedelta(days=30)
        )
        path = tmp_path / "snapshot.json"
        path.write_text(brandkit.dumps_snapshot(snapshot), encoding="utf-8")

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert brandkit.verify_branding_snapshot(payload, "2024-03-02T00:00:00Z").valid

        replayed = brandkit.resolve_from_snapshot(payload, "2024-03-02T00:00:00Z", TENANT)
        assert replayed == brandkit.resolve_branding(context, layers)
        assert replayed.values() == {
            "animation.enabled": False,
            "brand.name": "Acme Corp",
            "color.acme.red": "#DC2626",
            "color.blue.500": "#3B82F6",
            "color.gray.900": "#111827",
            "color.primary": "#DC2626",
            "text.default": "#111827",
        }
        assert replayed.applied_layers == (
            "system-core",
            "tenant-acme",
            "component-checkout",
        )

    def test_loads_snapshot_from_file(self, tmp_path, context, layers):
        snapshot = brandkit.generate_branding_snapshot(context, layers)
        path = tmp_path / "snapshot.json"
        path.write_text(brandkit.dumps_snapshot(snapshot), encoding="utf-8")

        assert brandkit.loads_snapshot(path.read_text(encoding="utf-8")) == snapshot

    def test_edited_file_is_rejected(self, tmp_path, context, layers):
        snapshot = brandkit.generate_branding_snapshot(context, layers)
        path = tmp_path / "snapshot.json"
        path.write_text(brandkit.dumps_snapshot(snapshot), encoding="utf-8")

        path.write_text(
            path.read_text(encoding="utf-8").replace("Acme Corp", "Evil Corp"),
            encoding="utf-8",
        )
        payload = json.loads(path.read_text(encoding="utf-8"))

        result = brandkit.verify_branding_snapshot(payload, EVALUATION_TIME)
        assert result.has(IssueCode.CHECKSUM_MISMATCH)
        with pytest.raises(brandkit.InvalidSnapshotError):
            brandkit.resolve_from_snapshot(payload, EVALUATION_TIME)

    def test_compact_and_indented_forms_verify(self, context, layers):
        """Whitespace in the stored JSON does not affect integrity."""
        snapshot = brandkit.generate_branding_snapshot(context, layers)
        for indent in (None, 2, 4):
            payload = json.loads(brandkit.dumps_snapshot(snapshot, indent=indent))
            assert brandkit.verify_branding_snapshot(payload).valid

    def test_replay_logs_nothing_when_valid(self, caplog, context, layers):
        snapshot = brandkit.generate_branding_snapshot(context, layers)
        with caplog.at_level("WARNING", logger="brandkit"):
            brandkit.resolve_from_snapshot(snapshot, EVALUATION_TIME)
        assert not [r for r in caplog.records if r.levelname == "WARNING"]
