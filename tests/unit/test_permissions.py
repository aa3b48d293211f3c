"""
Unit Tests - Permission Checker
"""

import pytest

from tests.fixtures import make_tool
from toolgate.core.types import Identity, RiskLevel
from toolgate.tools.permissions import PermissionChecker


@pytest.fixture
def checker():
    return PermissionChecker()


class TestPermissionChecker:
    """Tests for the role and MFA gates."""

    def test_no_requirements_allows(self, checker):
        decision = checker.check(make_tool(), Identity(user_id="u1"))

        assert decision.allowed
        assert decision.reason is None

    def test_unknown_tool_denied(self, checker):
        decision = checker.check(None, Identity(user_id="u1"))

        assert not decision.allowed
        assert decision.reason == "Unknown tool"

    def test_missing_identity_denied(self, checker):
        assert not checker.check(make_tool(), None).allowed

    def test_roles_are_alternatives(self, checker):
        """Test holding any one required role is sufficient."""
        definition = make_tool(required_roles=("admin", "ops"))

        assert checker.check(definition, Identity(user_id="u1", roles=["ops"])).allowed
        assert checker.check(definition, Identity(user_id="u1", roles=["admin", "x"])).allowed

        denied = checker.check(definition, Identity(user_id="u1", roles=["user"]))
        assert not denied.allowed
        assert denied.reason == "Requires one of roles: admin, ops"

    @pytest.mark.parametrize(
        "risk,needs_mfa",
        [
            (RiskLevel.LOW, False),
            (RiskLevel.MEDIUM, False),
            (RiskLevel.HIGH, True),
            (RiskLevel.CRITICAL, True),
        ],
    )
    def test_mfa_by_risk(self, checker, risk, needs_mfa):
        definition = make_tool(risk_level=risk)

        decision = checker.check(definition, Identity(user_id="u1"))
        assert decision.allowed is not needs_mfa

        assert checker.check(definition, Identity(user_id="u1", mfa_verified=True)).allowed

    def test_role_gate_reported_before_mfa(self, checker):
        definition = make_tool(risk_level=RiskLevel.CRITICAL, required_roles=("admin",))

        decision = checker.check(definition, Identity(user_id="u1"))

        assert decision.reason.startswith("Requires one of roles")

    def test_mfa_does_not_replace_roles(self, checker):
        definition = make_tool(risk_level=RiskLevel.HIGH, required_roles=("admin",))

        assert not checker.check(definition, Identity(user_id="u1", mfa_verified=True)).allowed
