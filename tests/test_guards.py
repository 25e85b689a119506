from __future__ import annotations

import pytest
from conftest import FailingAuditLogger, LoopBoundAuditLogger, bearer, build_gate_app

from rental_access.auth import roles
from rental_access.auth.guards import TENANT_EDIT_DENIAL


def _with_role(provider, store, subject: str, role: str, *, aal: str | None = None) -> None:
    provider.add(subject, subject, aal=aal)
    store.roles[subject] = role


@pytest.mark.asyncio
async def test_property_edit_allowed_for_staff(gate_app, make_client, provider, store) -> None:
    for role in ("admin", "owner", "agent", "landlord", "property_manager"):
        _with_role(provider, store, role, role)
    async with make_client(gate_app) as client:
        for role in ("admin", "owner", "agent", "landlord", "property_manager"):
            r = await client.post("/listings", headers=bearer(role))
            assert r.status_code == 200, role


@pytest.mark.asyncio
async def test_property_edit_denial_is_role_specific_and_audited(
    gate_app, make_client, provider, store, audit
) -> None:
    _with_role(provider, store, "r1", "renter")
    _with_role(provider, store, "g1", "guest")
    _with_role(provider, store, "v1", "vip")

    async with make_client(gate_app) as client:
        renter = await client.post("/listings", headers=bearer("r1"))
        guest = await client.post("/listings", headers=bearer("g1"))
        other = await client.post("/listings", headers=bearer("v1"))

    assert renter.status_code == guest.status_code == other.status_code == 403
    assert renter.json()["error"].startswith("Renters cannot create or edit property listings")
    assert guest.json()["error"].startswith("Guest accounts cannot edit property listings")
    assert "(vip)" in other.json()["error"]

    event = audit.events[0]
    assert event["subject_id"] == "r1"
    assert event["event_kind"] == "property_edit_denied"
    assert event["success"] is False
    assert event["detail"]["attempted_role"] == "renter"
    assert event["detail"]["reason"] == renter.json()["error"]
    assert event["request_context"]["path"] == "/listings"
    assert len(audit.events) == 3


@pytest.mark.asyncio
async def test_tenant_blocklist_applies_even_when_edit_is_allowed(
    gate_app, make_client, provider, store, audit, monkeypatch
) -> None:
    monkeypatch.setattr(roles, "can_edit_properties", lambda role: True)
    _with_role(provider, store, "r1", "renter")
    _with_role(provider, store, "b1", "buyer")

    async with make_client(gate_app) as client:
        for subject in ("r1", "b1"):
            r = await client.post("/listings", headers=bearer(subject))
            assert r.status_code == 403
            assert r.json() == {"error": TENANT_EDIT_DENIAL}

    assert [e["event_kind"] for e in audit.events] == ["tenant_edit_blocked"] * 2
    assert audit.events[0]["detail"]["path"] == "/listings"
    assert audit.events[0]["detail"]["method"] == "POST"


@pytest.mark.asyncio
async def test_application_review_guard(gate_app, make_client, provider, store, audit) -> None:
    _with_role(provider, store, "l1", "landlord")
    _with_role(provider, store, "b1", "buyer")

    async with make_client(gate_app) as client:
        assert (await client.patch("/applications/a1/status", headers=bearer("l1"))).status_code == 200
        r = await client.patch("/applications/a1/status", headers=bearer("b1"))

    assert r.status_code == 403
    assert r.json() == {"error": "Buyers cannot review rental applications."}
    assert audit.events[-1]["event_kind"] == "application_review_denied"


@pytest.mark.asyncio
async def test_audit_failure_does_not_mask_denial(resolver, store, provider, make_client) -> None:
    app = build_gate_app(resolver, store, FailingAuditLogger())
    _with_role(provider, store, "r1", "renter")

    async with make_client(app) as client:
        r = await client.post("/listings", headers=bearer("r1"))

    assert r.status_code == 403
    assert r.json()["error"].startswith("Renters cannot")


@pytest.mark.asyncio
async def test_two_factor_step_up(gate_app, make_client, provider, store) -> None:
    _with_role(provider, store, "enrolled", "landlord", aal="aal1")
    _with_role(provider, store, "verified", "landlord", aal="aal2")
    _with_role(provider, store, "plain", "landlord", aal="aal1")
    store.two_factor.update({"enrolled", "verified"})

    async with make_client(gate_app) as client:
        r = await client.post("/step-up", headers=bearer("enrolled"))
        assert r.status_code == 403
        assert r.json() == {
            "error": "Two-factor authentication required",
            "requiresTwoFactor": True,
        }

        assert (await client.post("/step-up", headers=bearer("verified"))).status_code == 200
        assert (await client.post("/step-up", headers=bearer("plain"))).status_code == 200


@pytest.mark.asyncio
async def test_two_factor_flags_unset_without_loader(gate_app, make_client, provider, store) -> None:
    _with_role(provider, store, "enrolled", "landlord", aal="aal1")
    store.two_factor.add("enrolled")

    async with make_client(gate_app) as client:
        r = await client.post("/step-up-unloaded", headers=bearer("enrolled"))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_step_up_is_distinguishable_from_permission_denial(
    gate_app, make_client, provider, store
) -> None:
    _with_role(provider, store, "enrolled", "renter", aal="aal1")
    store.two_factor.add("enrolled")

    async with make_client(gate_app) as client:
        step_up = await client.post("/step-up", headers=bearer("enrolled"))
        denied = await client.post("/listings", headers=bearer("enrolled"))

    assert step_up.status_code == denied.status_code == 403
    assert step_up.json().get("requiresTwoFactor") is True
    assert "requiresTwoFactor" not in denied.json()


@pytest.mark.asyncio
async def test_denials_are_audited_from_the_event_loop(
    resolver, make_client, provider, store, monkeypatch
) -> None:
    audit = LoopBoundAuditLogger()
    app = build_gate_app(resolver, store, audit)
    _with_role(provider, store, "r1", "renter")
    _with_role(provider, store, "b1", "buyer")

    async with make_client(app) as client:
        assert (await client.post("/listings", headers=bearer("r1"))).status_code == 403
        r = await client.patch("/applications/a1/status", headers=bearer("b1"))
        assert r.status_code == 403
        monkeypatch.setattr(roles, "can_edit_properties", lambda role: True)
        assert (await client.post("/listings", headers=bearer("r1"))).status_code == 403

    assert [e["event_kind"] for e in audit.events] == [
        "property_edit_denied",
        "application_review_denied",
        "tenant_edit_blocked",
    ]
