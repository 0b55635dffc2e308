"""Plan entitlements derived from a user's subscription state.

Plans are never stored as flags: everything here is computed from
``subscription_plan_id`` and ``subscription_status`` as mirrored from Stripe.
"""

from dataclasses import asdict, dataclass

from legatepro.db.enums import PlanId, SubscriptionStatus
from legatepro.db.models import User

# Statuses that count as an active paid subscription
ACTIVE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING})

# Statuses that keep Pro while Stripe retries payment
PRO_STATUSES = ACTIVE_STATUSES | {SubscriptionStatus.PAST_DUE}

FEATURES = ("exports", "advanced_reports", "collaborator_invites")


@dataclass(frozen=True)
class PlanLimits:
    estates: int
    collaborators_per_estate: int
    storage_mb: int


@dataclass(frozen=True)
class Entitlements:
    plan: PlanId
    status: SubscriptionStatus
    is_active: bool
    limits: PlanLimits
    features: dict[str, bool]

    @property
    def is_pro(self) -> bool:
        return self.plan == PlanId.PRO

    def to_dict(self) -> dict:
        return {
            "plan": self.plan.value,
            "status": self.status.value,
            "is_active": self.is_active,
            "is_pro": self.is_pro,
            "limits": asdict(self.limits),
            "features": dict(self.features),
        }


PLAN_LIMITS: dict[PlanId, PlanLimits] = {
    PlanId.FREE: PlanLimits(estates=1, collaborators_per_estate=0, storage_mb=250),
    PlanId.PRO: PlanLimits(estates=50, collaborators_per_estate=10, storage_mb=10_000),
}

PLAN_FEATURES: dict[PlanId, dict[str, bool]] = {
    PlanId.FREE: {feature: False for feature in FEATURES},
    PlanId.PRO: {feature: True for feature in FEATURES},
}

UPGRADE_REASONS = {
    "estates": "Free plan supports 1 estate. Upgrade to Pro to create more.",
    "collaborator_invites": "Inviting collaborators requires the Pro plan.",
    "collaborators": "This estate has reached its collaborator limit.",
    "exports": "Exports are available on the Pro plan.",
    "advanced_reports": "Advanced reports are available on the Pro plan.",
}


class EntitlementError(Exception):
    """Raised when the user's plan does not include an operation."""

    code = "ENTITLEMENT_REQUIRED"

    def __init__(self, message: str, feature: str | None = None, plan: PlanId = PlanId.FREE):
        super().__init__(message)
        self.message = message
        self.feature = feature
        self.plan = plan


def derive_plan(plan_id: str | None, status: str | None) -> PlanId:
    """Pro when the plan id says so, or the subscription is active/trialing/past_due."""
    if (plan_id or "").strip().lower() == PlanId.PRO.value:
        return PlanId.PRO
    if (status or "").strip().lower() == PlanId.PRO.value:
        return PlanId.PRO
    if SubscriptionStatus.normalize(status) in PRO_STATUSES:
        return PlanId.PRO
    return PlanId.FREE


def get_entitlements(user: User | None) -> Entitlements:
    plan_id = user.subscription_plan_id if user else None
    raw_status = user.subscription_status if user else None
    status = SubscriptionStatus.normalize(raw_status)
    plan = derive_plan(plan_id, raw_status)
    return Entitlements(
        plan=plan,
        status=status,
        is_active=status in ACTIVE_STATUSES,
        limits=PLAN_LIMITS[plan],
        features=PLAN_FEATURES[plan],
    )


def can_create_another_estate(user: User, owned_estates: int) -> bool:
    return owned_estates < get_entitlements(user).limits.estates


def can_invite_collaborators(user: User) -> bool:
    return get_entitlements(user).features["collaborator_invites"]


def can_add_collaborator(user: User, current_collaborators: int) -> bool:
    ent = get_entitlements(user)
    return (
        ent.features["collaborator_invites"]
        and current_collaborators < ent.limits.collaborators_per_estate
    )


def get_upgrade_reason(feature: str) -> str:
    return UPGRADE_REASONS.get(feature, "This feature requires the Pro plan.")


def require_pro(user: User) -> Entitlements:
    ent = get_entitlements(user)
    if not ent.is_pro:
        raise EntitlementError("This feature requires the Pro plan.", plan=ent.plan)
    return ent


def require_feature(user: User, feature: str) -> Entitlements:
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature}")
    ent = get_entitlements(user)
    if not ent.features[feature]:
        raise EntitlementError(get_upgrade_reason(feature), feature=feature, plan=ent.plan)
    return ent
