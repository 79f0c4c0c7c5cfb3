"""
Ajar - Reach hidden members of Python objects

A small set of utilities to call a hidden method, get or set a hidden field,
and overwrite the value of a field that refuses reassignment, on instances,
classes and modules. Meant for tests, instrumentation and working around
encapsulation in third-party code.
"""

__version__ = "0.1.0"
__author__ = "Ajar Team"
__license__ = "Apache-2.0"

# Configuration
from .config import AjarConfig, Config, load_config, save_config

# Core public API
from .core.accessor import (
    AccessResult,
    Ajar,
    attempt,
    get,
    get_field,
    invoke,
    invoke_method,
    invoke_static,
    overwrite,
    overwrite_field,
    overwrite_static,
    set,
    set_field,
    try_get,
    try_get_field,
    try_invoke,
    try_invoke_method,
    try_invoke_static,
    try_overwrite,
    try_overwrite_field,
    try_overwrite_static,
    try_set,
    try_set_field,
)
from .core.diagnostics import DiagnosticRecord, get_diagnostic_log
from .core.errors import (
    AccessDenied,
    ConstructionForbidden,
    ErrorKind,
    InvocationFailure,
    MemberNotFound,
    ReflectionError,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Accessor
    "Ajar",
    "invoke",
    "invoke_method",
    "invoke_static",
    "get",
    "get_field",
    "set",
    "set_field",
    "overwrite",
    "overwrite_field",
    "overwrite_static",
    "attempt",
    "AccessResult",
    # Lenient variants
    "try_invoke",
    "try_invoke_method",
    "try_invoke_static",
    "try_get",
    "try_get_field",
    "try_set",
    "try_set_field",
    "try_overwrite",
    "try_overwrite_field",
    "try_overwrite_static",
    # Errors
    "ReflectionError",
    "MemberNotFound",
    "AccessDenied",
    "InvocationFailure",
    "ConstructionForbidden",
    "ErrorKind",
    # Diagnostics
    "DiagnosticRecord",
    "get_diagnostic_log",
    # Configuration
    "AjarConfig",
    "Config",
    "load_config",
    "save_config",
]
