"""
Runtime Module

Wiring for assembling a ready-to-use tool broker.
"""

from toolgate.runtime.factory import RegistryBuilder, create_audit_logger, create_registry

__all__ = [
    "RegistryBuilder",
    "create_audit_logger",
    "create_registry",
]
