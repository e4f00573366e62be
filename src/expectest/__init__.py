"""expectest - expressive expectations for pytest."""

__version__ = "0.1.0"

from expectest.diagnostics import ExpectationFailed, UsageError
from expectest.expander import Expander, expect
from expectest.forms import from_each, in_, lazy, more, more_arrow, more_of, thread_last
from expectest.predicates import approximately, between, between_, functionally, truthy
from expectest.reporting import Report, ReportStatus, collecting
from expectest.runner import FixtureSpec, defexpect, expecting, use_fixtures
from expectest.side_effects import capturing, side_effects
from expectest.specs import register_spec

__all__ = [
    "__version__",
    # Expectations
    "expect",
    "Expander",
    "defexpect",
    "expecting",
    # Forms
    "from_each",
    "in_",
    "lazy",
    "more",
    "more_arrow",
    "more_of",
    "thread_last",
    # Predicates
    "approximately",
    "between",
    "between_",
    "functionally",
    "truthy",
    # Side effects
    "capturing",
    "side_effects",
    # Specs
    "register_spec",
    # Fixtures
    "FixtureSpec",
    "use_fixtures",
    # Reporting and errors
    "Report",
    "ReportStatus",
    "collecting",
    "ExpectationFailed",
    "UsageError",
]
