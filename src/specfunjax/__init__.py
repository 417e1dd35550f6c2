from . import checks
from . import double_factorial
from . import msbessel
from . import order_limits
from . import recurrence
from . import sbessel
from . import series
from . import validation

__all__ = [
    "checks",
    "double_factorial",
    "msbessel",
    "order_limits",
    "recurrence",
    "sbessel",
    "series",
    "validation",
]
