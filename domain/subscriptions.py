from datetime import datetime
import math

from domain.models import Plan, Profile, SubscriptionStatus
from domain.repository import utcnow


PLANS: tuple[Plan, ...] = (
    Plan(name="Weekly", price="$3.99", period="week"),
    Plan(name="Monthly", price="$7.99", period="month", featured=True),
    Plan(name="Yearly", price="$39.99", period="year", savings="Save 17%"),
)


FEATURES: tuple[str, ...] = (
    "Unlimited recipe generations",
    "Save unlimited recipes",
    "Priority support",
    "Early access to new features",
)


SECONDS_PER_DAY = 60 * 60 * 24


class UnknownPlan(ValueError):
    pass


def get_plan(name: str) -> Plan:
    for plan in PLANS:
        if plan.name.lower() == name.strip().lower():
            return plan
    raise UnknownPlan(name)


def in_trial_period(profile: Profile, now: datetime | None = None) -> bool:
    now = utcnow() if now is None else now
    if profile.subscription_status is not SubscriptionStatus.trial:
        return False
    if profile.trial_end_date is None:
        return False
    return profile.trial_end_date > now


def remaining_trial_days(profile: Profile, now: datetime | None = None) -> int:
    """Whole days left in the trial, rounded up. Zero once it has run out."""
    now = utcnow() if now is None else now
    if profile.trial_end_date is None:
        return 0
    remaining = (profile.trial_end_date - now).total_seconds() / SECONDS_PER_DAY
    return max(0, math.ceil(remaining))


def subscribe(profile: Profile, plan_name: str, now: datetime | None = None) -> Profile:
    plan = get_plan(plan_name)
    profile.subscription_status = plan.status
    profile.updated_at = utcnow() if now is None else now
    return profile
