"""
Sanction test suite.

This package contains tests for the Sanction decision engine:
- Core types and configuration
- Leaf, composite and criteria policies
- Decision engine aggregation and identity resolution
- Reports, fluent checks and decorators
- In-memory and Casbin-backed stores
"""
