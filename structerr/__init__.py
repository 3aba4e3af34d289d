from __future__ import annotations

"""
structerr: structured, reportable errors.

    structerr.initialize("1.4.2", reporter, enable_logging=True)
    ...
    try:
        conn = dial(addr)
    except OSError as exc:
        structerr.wrap(exc).with_field("proxy_addr", addr).report()

`wrap` extracts as much detail as it can from standard library and
structerr failure types; anything else still records its type and message.
Fields can be chained in any order, at any time.
"""

from .diagnostics import Classification, classify, register_matcher  # noqa: F401
from .keys import normalize  # noqa: F401
from .record import StructuredError, new, wrap  # noqa: F401
from .reporting import Reporter, ReportingFacade, initialize, report  # noqa: F401
