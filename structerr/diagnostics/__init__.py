from __future__ import annotations

"""
Diagnostics and failure classification.

This package provides:
- classifier: map an arbitrary exception to a stable, machine-readable
  (operation, type tag, description, extra fields) classification
- sentinels: identity-keyed tables for payload-less failures

The goal is to keep classification logic centralized and deterministic.
"""

from .classifier import Classification, classify, register_matcher, type_tag  # noqa: F401
from .sentinels import MISC_SENTINELS, PROTOCOL_SENTINELS, lookup_sentinel  # noqa: F401
