"""
Toolgate: Capability-Gated Tool Broker

Authorization-and-execution core for agent tool calling:
- Allowlisted tool catalog with schema-validated input
- Role and MFA gates per tool risk level
- Per-caller sliding window rate limits
- Hard wall-clock timeouts and one audit event per terminal call state
"""

__version__ = "0.1.0"
__author__ = "Toolgate Team"
