"""Tests for plan entitlements."""

import pytest

from legatepro.db.enums import PlanId, SubscriptionStatus
from legatepro.services import entitlements
from legatepro.services.entitlements import EntitlementError
from tests.conftest import make_user


@pytest.mark.parametrize(
    "plan_id,status,expected",
    [
        (None, None, PlanId.FREE),
        ("free", "free", PlanId.FREE),
        (" PRO ", None, PlanId.PRO),
        (None, "pro", PlanId.PRO),
        ("free", "active", PlanId.PRO),
        ("free", "trialing", PlanId.PRO),
        ("free", "past_due", PlanId.PRO),
        ("free", "canceled", PlanId.FREE),
        ("free", "unpaid", PlanId.FREE),
        ("free", "bogus", PlanId.FREE),
    ],
)
def test_derive_plan(plan_id, status, expected):
    assert entitlements.derive_plan(plan_id, status) == expected


def test_free_entitlements(db):
    user = make_user(db, "free")
    ent = entitlements.get_entitlements(user)
    assert ent.plan == PlanId.FREE
    assert ent.status == SubscriptionStatus.FREE
    assert ent.is_active is False
    assert ent.limits.estates == 1
    assert not any(ent.features.values())

    assert entitlements.can_create_another_estate(user, 0) is True
    assert entitlements.can_create_another_estate(user, 1) is False
    assert entitlements.can_invite_collaborators(user) is False


def test_past_due_keeps_pro_but_is_not_active(db):
    user = make_user(db, "late", subscription_status="past_due")
    ent = entitlements.get_entitlements(user)
    assert ent.is_pro
    assert ent.is_active is False
    assert ent.to_dict()["limits"] == {
        "estates": 50,
        "collaborators_per_estate": 10,
        "storage_mb": 10_000,
    }


def test_collaborator_limit(db):
    user = make_user(db, "pro", subscription_plan_id="pro", subscription_status="active")
    assert entitlements.can_add_collaborator(user, 9) is True
    assert entitlements.can_add_collaborator(user, 10) is False


def test_require_feature(db):
    free = make_user(db, "free")
    pro = make_user(db, "pro", subscription_plan_id="pro", subscription_status="active")

    with pytest.raises(EntitlementError) as exc:
        entitlements.require_feature(free, "exports")
    assert exc.value.code == "ENTITLEMENT_REQUIRED"
    assert exc.value.feature == "exports"
    assert exc.value.plan == PlanId.FREE
    assert "Pro" in exc.value.message

    assert entitlements.require_feature(pro, "exports").is_pro

    with pytest.raises(ValueError):
        entitlements.require_feature(pro, "teleportation")


def test_require_pro(db):
    with pytest.raises(EntitlementError):
        entitlements.require_pro(make_user(db, "free"))


def test_upgrade_reason_default():
    assert entitlements.get_upgrade_reason("unknown") == "This feature requires the Pro plan."
