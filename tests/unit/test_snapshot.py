"""Tests for snapshot generation, verification and replay."""

from __future__ import annotations

import copy
import dataclasses
import json
from datetime import timedelta
from typing import Any

import pytest

from brandkit._ids import SNAPSHOT_ID_LENGTH, checksum, snapshot_id
from brandkit.config import BrandkitConfig
from brandkit.engine.resolver import resolve_branding
from brandkit.engine.snapshot import (
    generate_branding_snapshot,
    resolve_from_snapshot,
    verify_branding_snapshot,
)
from brandkit.errors import (
    InvalidSnapshotError,
    MissingEvaluationTimeError,
    SnapshotTenantMismatchError,
    TemporalViolationError,
)
from brandkit.schema import SNAPSHOT_VERSION, dump_context, dump_snapshot, snapshot_body
from brandkit.types import BrandingContext, BrandingLayer, IssueCode

TENANT_A = "550e8400-e29b-41d4-a716-446655440001"
TENANT_B = "550e8400-e29b-41d4-a716-446655440099"
GENERATED_AT = "2024-01-15T12:00:00.000Z"


@pytest.fixture
def context() -> BrandingContext:
    return BrandingContext(tenant_id=TENANT_A, evaluation_time=GENERATED_AT)


@pytest.fixture
def layers() -> list[BrandingLayer]:
    return [
        BrandingLayer(
            id="sys",
            definition_id="core",
            level="system",
            tokens={
                "color.blue.500": "#3B82F6",
                "color.primary": "{color.blue.500}",
                "spacing.unit": 4,
                "motion.enabled": True,
            },
        ),
        BrandingLayer(
            id="ten",
            definition_id="acme",
            level="tenant",
            tenant_id=TENANT_A,
            tokens={"brand.name": "Acme", "opacity.overlay": 0.75},
        ),
        BrandingLayer(
            id="other",
            definition_id="bolt",
            level="tenant",
            tenant_id=TENANT_B,
            tokens={"brand.name": "Bolt"},
        ),
        BrandingLayer(
            id="off",
            definition_id="core",
            level="contextual",
            enabled=False,
            tokens={"brand.name": "Disabled"},
        ),
    ]


def json_round_trip(snapshot: Any) -> dict[str, Any]:
    return json.loads(json.dumps(dump_snapshot(snapshot)))


class TestGenerate:
    """Tests for generate_branding_snapshot()."""

    def test_fields(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)

        assert snapshot.version == SNAPSHOT_VERSION == "1.0"
        assert snapshot.context == context
        assert snapshot.generated_at == GENERATED_AT
        assert snapshot.expires_at is None
        assert len(snapshot.snapshot_id) == SNAPSHOT_ID_LENGTH
        assert len(snapshot.checksum) == 64

    def test_layer_ids_include_all_candidates(self, context, layers):
        """Every input layer is recorded, even those not applied."""
        snapshot = generate_branding_snapshot(context, layers)
        assert snapshot.layer_ids == ("sys", "ten", "other", "off")
        assert snapshot.resolved.applied_layers == ("sys", "ten")

    def test_deterministic(self, context, layers):
        first = generate_branding_snapshot(context, layers)
        second = generate_branding_snapshot(context, layers)

        assert first.snapshot_id == second.snapshot_id
        assert first.checksum == second.checksum
        assert first.generated_at == second.generated_at
        assert first.resolved == second.resolved
        assert dump_snapshot(first) == dump_snapshot(second)

    def test_identity_derivation(self, context, layers):
        """Id and checksum are recomputable from the snapshot alone."""
        snapshot = generate_branding_snapshot(context, layers)
        payload = dump_snapshot(snapshot)

        assert snapshot.snapshot_id == snapshot_id(dump_context(context), GENERATED_AT)
        assert snapshot.checksum == checksum(snapshot_body(payload))
        assert set(snapshot_body(payload)) == {
            "version",
            "context",
            "resolved",
            "layerIds",
            "generatedAt",
        }

    def test_requires_evaluation_time(self, layers):
        with pytest.raises(MissingEvaluationTimeError, match="snapshot generation"):
            generate_branding_snapshot(BrandingContext(tenant_id=TENANT_A), layers)

    def test_accepts_iterable(self, context, layers):
        snapshot = generate_branding_snapshot(context, iter(layers))
        assert snapshot.layer_ids == ("sys", "ten", "other", "off")
        assert snapshot.resolved.applied_layers == ("sys", "ten")

    def test_ttl_sets_expiry(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers, ttl=timedelta(days=1))
        assert snapshot.expires_at == "2024-01-16T12:00:00.000Z"

    def test_ttl_from_config(self, context, layers):
        config = BrandkitConfig(snapshot_ttl=timedelta(hours=2))
        snapshot = generate_branding_snapshot(context, layers, config=config)
        assert snapshot.expires_at == "2024-01-15T14:00:00.000Z"

    def test_expiry_not_in_checksum(self, context, layers):
        plain = generate_branding_snapshot(context, layers)
        expiring = generate_branding_snapshot(context, layers, ttl=timedelta(days=1))
        assert plain.checksum == expiring.checksum
        assert plain.snapshot_id == expiring.snapshot_id


class TestVerify:
    """Tests for verify_branding_snapshot()."""

    def test_valid_snapshot(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        result = verify_branding_snapshot(snapshot, GENERATED_AT)
        assert result.valid
        assert result.errors == ()

    def test_valid_without_evaluation_time(self, context, layers):
        assert verify_branding_snapshot(generate_branding_snapshot(context, layers)).valid

    def test_json_round_trip_is_valid(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        result = verify_branding_snapshot(payload, "2024-02-01T00:00:00Z")
        assert result.valid, result.errors
        assert len(payload["checksum"]) == 64

    def test_tampered_token_value(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["resolved"]["tokens"]["brand.name"]["value"] = "Evil Corp"

        result = verify_branding_snapshot(payload, GENERATED_AT)
        assert not result.valid
        assert result.has(IssueCode.CHECKSUM_MISMATCH)
        assert any("Checksum mismatch" in e for e in result.errors)
        assert not result.has(IssueCode.SNAPSHOT_ID_MISMATCH)

    def test_tampered_token_type(self, context, layers):
        """Changing 4 to "4" is tampering too."""
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["resolved"]["tokens"]["spacing.unit"]["value"] = "4"
        assert verify_branding_snapshot(payload).has(IssueCode.CHECKSUM_MISMATCH)

    def test_tampered_snapshot_id(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        tampered = dataclasses.replace(snapshot, snapshot_id="tampered-id-12345678901234567890")

        result = verify_branding_snapshot(tampered, GENERATED_AT)
        assert not result.valid
        assert result.has(IssueCode.SNAPSHOT_ID_MISMATCH)
        assert any("Snapshot ID mismatch" in e for e in result.errors)
        # The id is not part of the checksum
        assert not result.has(IssueCode.CHECKSUM_MISMATCH)

    def test_tampered_context_reports_both(self, context, layers):
        """Changing the tenant breaks both checksum and id; both are reported."""
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["context"]["tenantId"] = TENANT_B

        result = verify_branding_snapshot(payload, GENERATED_AT)
        assert [issue.code for issue in result.issues] == [
            IssueCode.CHECKSUM_MISMATCH,
            IssueCode.SNAPSHOT_ID_MISMATCH,
        ]

    def test_multiple_issues_accumulate(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers, ttl=timedelta(hours=1))
        payload = json_round_trip(snapshot)
        payload["layerIds"].append("injected")
        payload["snapshotId"] = "0" * 32

        result = verify_branding_snapshot(payload, "2024-01-15T18:00:00Z")
        assert [issue.code for issue in result.issues] == [
            IssueCode.CHECKSUM_MISMATCH,
            IssueCode.SNAPSHOT_ID_MISMATCH,
            IssueCode.EXPIRED,
        ]

    def test_expired(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers, ttl=timedelta(hours=1))

        assert verify_branding_snapshot(snapshot, "2024-01-15T13:00:00.000Z").valid
        result = verify_branding_snapshot(snapshot, "2024-01-15T13:00:00.001Z")
        assert result.errors == ("Snapshot has expired",)

    def test_schema_failure_short_circuits(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["version"] = "2.0"
        payload["snapshotId"] = "bogus"

        result = verify_branding_snapshot(payload, GENERATED_AT)
        assert len(result.issues) == 1
        assert result.issues[0].code is IssueCode.SCHEMA
        assert "version" in result.errors[0]

    @pytest.mark.parametrize("bad", [None, "snapshot", 42, [], {}])
    def test_never_raises_on_garbage(self, bad):
        result = verify_branding_snapshot(bad, GENERATED_AT)
        assert not result.valid
        assert result.issues[0].code is IssueCode.SCHEMA

    @pytest.mark.parametrize("extra", [{1: "x", "a": "y"}, {1, "a"}])
    def test_never_raises_on_unhashable_extra_field(self, context, layers, extra):
        """Values that cannot be canonicalized become a schema issue."""
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["meta"] = extra

        result = verify_branding_snapshot(payload, GENERATED_AT)
        assert len(result.issues) == 1
        assert result.issues[0].code is IssueCode.SCHEMA

    def test_never_raises_on_broken_object(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        broken = dataclasses.replace(snapshot, context=None)
        result = verify_branding_snapshot(broken, GENERATED_AT)
        assert result.issues[0].code is IssueCode.SCHEMA

    def test_non_scalar_token_value_is_schema_issue(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["resolved"]["tokens"]["brand.name"]["value"] = {"nested": True}
        result = verify_branding_snapshot(payload)
        assert result.issues[0].code is IssueCode.SCHEMA

    def test_invalid_evaluation_time_reported(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        result = verify_branding_snapshot(snapshot, "not-a-time")
        assert result.has(IssueCode.INVALID_EVALUATION_TIME)

    def test_verify_does_not_mutate_input(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        before = copy.deepcopy(payload)
        verify_branding_snapshot(payload, GENERATED_AT)
        assert payload == before


class TestResolveFromSnapshot:
    """Tests for resolve_from_snapshot()."""

    def test_offline_equivalence(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        replayed = resolve_from_snapshot(snapshot, "2024-01-16T00:00:00Z")
        live = resolve_branding(context, layers)

        assert replayed == live
        assert replayed.values() == live.values()

    def test_offline_equivalence_from_json(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        replayed = resolve_from_snapshot(payload, GENERATED_AT, TENANT_A)
        assert replayed == resolve_branding(context, layers)

    def test_returns_embedded_result(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        assert resolve_from_snapshot(snapshot, GENERATED_AT) is snapshot.resolved

    def test_invalid_snapshot(self, context, layers):
        payload = json_round_trip(generate_branding_snapshot(context, layers))
        payload["resolved"]["tokens"]["brand.name"]["value"] = "Evil Corp"
        payload["snapshotId"] = "f" * 32

        with pytest.raises(InvalidSnapshotError) as exc_info:
            resolve_from_snapshot(payload, GENERATED_AT)

        err = exc_info.value
        assert err.code == "INVALID_SNAPSHOT"
        assert len(err.errors) == 2
        assert "Checksum mismatch" in str(err)

    def test_tenant_mismatch(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)

        with pytest.raises(SnapshotTenantMismatchError) as exc_info:
            resolve_from_snapshot(snapshot, GENERATED_AT, TENANT_B)

        err = exc_info.value
        assert err.code == "SNAPSHOT_TENANT_MISMATCH"
        assert err.snapshot_tenant_id == TENANT_A
        assert err.context_tenant_id == TENANT_B

    def test_matching_tenant(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        assert resolve_from_snapshot(snapshot, GENERATED_AT, TENANT_A).tenant_id == TENANT_A

    def test_no_time_travel(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        with pytest.raises(TemporalViolationError, match="before snapshot generation"):
            resolve_from_snapshot(snapshot, "2024-01-15T11:59:59.999Z")

    def test_generation_instant_allowed(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        assert resolve_from_snapshot(snapshot, "2024-01-15T12:00:00Z")

    def test_expired(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers, ttl=timedelta(minutes=5))
        with pytest.raises(InvalidSnapshotError, match="expired"):
            resolve_from_snapshot(snapshot, "2024-01-15T12:10:00Z")

    def test_evaluation_time_required(self, context, layers):
        snapshot = generate_branding_snapshot(context, layers)
        with pytest.raises(MissingEvaluationTimeError):
            resolve_from_snapshot(snapshot, "")
