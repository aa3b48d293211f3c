"""
Test Suite Initialization

Toolgate test package.
"""
