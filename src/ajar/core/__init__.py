"""
Core functionality package for Ajar.

This package contains member resolution, the reflective accessor functions,
the error taxonomy and the diagnostics sink used by the try_ variants.
"""

from .accessor import *
from .diagnostics import DiagnosticLog, DiagnosticRecord, get_diagnostic_log
from .errors import *
from .resolver import FieldHandle, FieldMutabilityOverride, MemberResolver, MethodHandle

__version__ = "0.1.0"
