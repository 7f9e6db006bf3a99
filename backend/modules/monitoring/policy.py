"""Plan-limit policy consulted when monitors and channels are created or edited.

The health-check cycle never reads this; limits only gate configuration.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from django.conf import settings

logger = logging.getLogger("monitors")


class PolicyProvider(Protocol):
    def plan_for(self, owner) -> str:  # pragma: no cover - interface
        ...

    def min_check_interval_seconds(self, owner) -> int:  # pragma: no cover - interface
        ...

    def allowed_channel_types(self, owner) -> frozenset[str]:  # pragma: no cover - interface
        ...

    def monitor_limit(self, owner) -> int:  # pragma: no cover - interface
        ...


class PlanPolicyProvider:
    """Reads limits from ``settings.PLAN_LIMITS``.

    An account's plan is the name of the first auth group it belongs to that
    matches a plan key; everyone else gets ``settings.DEFAULT_PLAN``.
    """

    def __init__(self, plan_limits: dict[str, dict[str, Any]] | None = None, default_plan: str | None = None):
        self._plan_limits = plan_limits
        self._default_plan = default_plan

    @property
    def plan_limits(self) -> dict[str, dict[str, Any]]:
        return self._plan_limits if self._plan_limits is not None else settings.PLAN_LIMITS

    @property
    def default_plan(self) -> str:
        return self._default_plan or settings.DEFAULT_PLAN

    def plan_for(self, owner) -> str:
        if owner is not None and getattr(owner, "pk", None) is not None:
            group_names = set(owner.groups.values_list("name", flat=True))
            for plan in self.plan_limits:
                if plan in group_names:
                    return plan
        return self.default_plan

    def limits_for(self, owner) -> dict[str, Any]:
        plan = self.plan_for(owner)
        limits = self.plan_limits.get(plan)
        if limits is None:
            logger.warning("Unknown plan, falling back to default", extra={"plan": plan})
            limits = self.plan_limits.get(self.default_plan) or next(iter(self.plan_limits.values()))
        return limits

    def min_check_interval_seconds(self, owner) -> int:
        return int(self.limits_for(owner)["check_interval_seconds"])

    def allowed_channel_types(self, owner) -> frozenset[str]:
        return frozenset(self.limits_for(owner)["notification_channels"])

    def monitor_limit(self, owner) -> int:
        return int(self.limits_for(owner)["monitors"])


default_policy = PlanPolicyProvider()

__all__ = ["PlanPolicyProvider", "PolicyProvider", "default_policy"]
