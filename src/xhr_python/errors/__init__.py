"""Error hierarchy for xhr-python.

Usage errors are raised synchronously by the call that broke a precondition.
Network failures surface as events, carried internally as TransportError.
"""

from xhr_python.errors.base import (
    ErrorContext,
    InvalidAccessError,
    SecurityError,
    TransportError,
    UsageError,
    XhrError,
)
from xhr_python.errors.base import (
    NotImplementedError as XhrNotImplementedError,
)
from xhr_python.errors.base import (
    SyntaxError as XhrSyntaxError,
)
from xhr_python.errors.base import (
    TypeError as XhrTypeError,
)
from xhr_python.errors.classification import (
    ErrorClass,
    classify_transport_error,
    is_retryable,
)

__all__ = [
    # Base errors
    "ErrorContext",
    "InvalidAccessError",
    "SecurityError",
    "TransportError",
    "UsageError",
    "XhrError",
    "XhrNotImplementedError",
    "XhrSyntaxError",
    "XhrTypeError",
    # Classification
    "ErrorClass",
    "classify_transport_error",
    "is_retryable",
]
