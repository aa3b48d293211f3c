"""
Tool Permission Checking

Role and MFA gates evaluated against a tool's declared access requirements.

Design decisions:
- Pure function of (tool definition, identity)
- Two independent gates that must both pass
- Role requirement is a logical OR over the listed roles
- Fails closed on missing or unknown input
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from toolgate.core.types import Identity, RiskLevel

if TYPE_CHECKING:
    from toolgate.tools.registry import ToolDefinition


@dataclass(frozen=True)
class PermissionDecision:
    """Result of a permission check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "PermissionDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "PermissionDecision":
        return cls(allowed=False, reason=reason)


class PermissionChecker:
    """
    Evaluates a caller identity against a tool's requirements.

    Gates:
    - Roles: when `required_roles` is non-empty, the identity must hold
      at least one of them
    - MFA: high and critical risk tools require `mfa_verified`

    No caching and no state; safe to share.
    """

    def check(
        self,
        definition: "ToolDefinition | None",
        identity: Identity | None,
    ) -> PermissionDecision:
        if definition is None:
            return PermissionDecision.deny("Unknown tool")

        if identity is None:
            return PermissionDecision.deny("No caller identity")

        role_decision = self._check_roles(definition, identity)
        if not role_decision.allowed:
            return role_decision

        return self._check_mfa(definition, identity)

    def _check_roles(self, definition: "ToolDefinition", identity: Identity) -> PermissionDecision:
        required = definition.required_roles
        if not required:
            return PermissionDecision.allow()

        held = set(identity.roles)
        if held.intersection(required):
            return PermissionDecision.allow()

        return PermissionDecision.deny(
            f"Requires one of roles: {', '.join(sorted(required))}"
        )

    def _check_mfa(self, definition: "ToolDefinition", identity: Identity) -> PermissionDecision:
        try:
            risk = RiskLevel(definition.risk_level)
        except ValueError:
            return PermissionDecision.deny(f"Unknown risk level: {definition.risk_level}")

        if risk.requires_mfa and not identity.mfa_verified:
            return PermissionDecision.deny(
                f"MFA verification required for {risk.value} risk tool"
            )

        return PermissionDecision.allow()
