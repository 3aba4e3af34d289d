from __future__ import annotations

"""
Reporter backends for structerr.reporting.
"""

from .statsig_client import StatsigReporter, shutdown_statsig  # noqa: F401
