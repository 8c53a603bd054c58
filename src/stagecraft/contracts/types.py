"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of semantically different string values.
"""

from typing import NewType

StageID = NewType("StageID", str)
"""Unique stage identifier within one pipeline (e.g., 'stage-review')"""

AgentID = NewType("AgentID", str)
"""Agent registry identifier (e.g., 'impl-1')"""
