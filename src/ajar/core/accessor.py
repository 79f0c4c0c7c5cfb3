"""
Reflective Accessor for Ajar

Small set of functions to call a hidden method, get or set a hidden field,
and overwrite the value of a field that refuses reassignment, on instances
as well as on classes and modules.

Every function resolves the member afresh, uses it once and drops the
handle. The strict functions raise MemberNotFound, AccessDenied or
InvocationFailure; each has a try_ counterpart that logs the failure and
returns None instead.

Example:
    class Target:
        def __init__(self):
            self.__piyo = "piyo"

        def _hoge(self):
            return "hogehogehoge"

    invoke(Target(), "_hoge")        # "hogehogehoge"
    get(Target(), "__piyo")          # "piyo"
"""

import functools
import inspect
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Optional, Sequence

from .diagnostics import get_logger, report_failure
from .errors import (
    RECOVERABLE_ERRORS,
    ConstructionForbidden,
    ErrorKind,
    InvocationFailure,
    ReflectionError,
)
from .resolver import FieldMutabilityOverride, MemberResolver, MethodHandle

_resolver = MemberResolver()
_override = FieldMutabilityOverride()


@dataclass
class AccessResult:
    """Outcome of an accessor call run through attempt()."""

    ok: bool
    value: Any = None
    error: Optional[ReflectionError] = None
    member: Optional[str] = None
    kind: Optional[ErrorKind] = None


def _require_target(target: Any, name: str) -> None:
    if target is None:
        raise TypeError(f"cannot access {name} on None")


def _call(handle: MethodHandle, receiver: Any, args: Optional[Sequence[Any]]) -> Any:
    """Bind handle, check the argument count and run it."""
    bound = handle.bind(receiver)
    args = tuple(args or ())

    if handle.validates_arguments:
        try:
            signature = inspect.signature(bound)
        except (TypeError, ValueError):
            signature = None
        if signature is not None:
            # Wrong arity is the caller's mistake, not the method's
            signature.bind(*args)

    get_logger().debug(f"invoking {handle.owner!r}.{handle.name} with {len(args)} argument(s)")
    try:
        return bound(*args)
    except Exception as e:
        raise InvocationFailure(handle.requested, e) from e


def invoke_method(
    target: Any,
    method_name: str,
    arg_types: Optional[Sequence[type]] = None,
    args: Optional[Sequence[Any]] = None,
) -> Any:
    """
    Invoke a method declared by the type of target.

    Args:
        target: object to call the method on
        method_name: the method name; "__name" is looked up in its mangled form too
        arg_types: parameter types used to pick an overload, or None for the
            single method with that name
        args: positional arguments

    Returns:
        Whatever the method returns.
    """
    _require_target(target, method_name)
    handle = _resolver.resolve_method(type(target), method_name, arg_types)
    return _call(handle, target, args)


def invoke_static(
    owner: Any,
    method_name: str,
    arg_types: Optional[Sequence[type]] = None,
    args: Optional[Sequence[Any]] = None,
) -> Any:
    """
    Invoke a method declared by a class (or module) without a receiver.

    Static methods are called as they are, class methods are bound to owner.
    """
    _require_target(owner, method_name)
    handle = _resolver.resolve_method(owner, method_name, arg_types, static=True)
    return _call(handle, None, args)


def get_field(target: Any, field_name: str) -> Any:
    """Get the value of a hidden field of target."""
    _require_target(target, field_name)
    handle = _resolver.resolve_field(type(target), field_name, target=target)
    return handle.read(target)


def set_field(target: Any, field_name: str, value: Any) -> None:
    """
    Set a hidden field of target through its normal assignment path.

    Reassignment guards (frozen dataclasses, a refusing __setattr__) still
    apply and surface as AccessDenied; use overwrite_field to get past them.
    """
    _require_target(target, field_name)
    handle = _resolver.resolve_field(type(target), field_name, target=target)
    handle.write(target, value)


def overwrite_field(target: Any, field_name: str, new_value: Any) -> None:
    """Overwrite a field of target even if its type forbids reassignment."""
    _require_target(target, field_name)
    handle = _resolver.resolve_field(type(target), field_name, target=target)
    handle = _override.unlock(handle)
    handle.write(target, new_value)


def overwrite_static(owner: Any, field_name: str, new_value: Any) -> None:
    """
    Overwrite a class or module level field, bypassing metaclass guards.

    The new value is seen by every later read of owner.field_name in the
    process. There is no undo and no locking.
    """
    _require_target(owner, field_name)
    handle = _resolver.resolve_field(owner, field_name)
    handle = _override.unlock(handle)
    get_logger().debug(f"overwriting {owner!r}.{handle.name}")
    handle.write(owner, new_value)


# Dispatching entry points: classes and modules are static targets


@functools.singledispatch
def invoke(
    target: Any,
    method_name: str,
    arg_types: Optional[Sequence[type]] = None,
    args: Optional[Sequence[Any]] = None,
) -> Any:
    """Invoke a hidden method on an instance, or a static one on a class or module."""
    return invoke_method(target, method_name, arg_types, args)


@invoke.register(type)
@invoke.register(ModuleType)
def _invoke_static(owner, method_name, arg_types=None, args=None):
    return invoke_static(owner, method_name, arg_types, args)


@functools.singledispatch
def overwrite(target: Any, field_name: str, new_value: Any) -> None:
    """Overwrite a protected field on an instance, or a static one on a class or module."""
    overwrite_field(target, field_name, new_value)


@overwrite.register(type)
@overwrite.register(ModuleType)
def _overwrite_static(owner, field_name, new_value):
    overwrite_static(owner, field_name, new_value)


get = get_field
set = set_field


def attempt(operation: Callable, *args, **kwargs) -> AccessResult:
    """Run an accessor operation and capture its failure instead of raising it."""
    try:
        value = operation(*args, **kwargs)
    except RECOVERABLE_ERRORS as e:
        return AccessResult(ok=False, error=e, member=e.member, kind=e.kind)
    return AccessResult(ok=True, value=value)


def _lenient(operation: Callable) -> Callable:
    """Build the try_ variant of operation."""

    @functools.wraps(operation, updated=())
    def wrapper(*args, **kwargs):
        result = attempt(operation, *args, **kwargs)
        if not result.ok:
            report_failure(operation.__name__, result.error)
        return result.value

    wrapper.__name__ = f"try_{operation.__name__}"
    wrapper.__qualname__ = wrapper.__name__
    wrapper.__doc__ = (
        f"Alias of {operation.__name__} that logs failures and returns None instead of raising."
    )
    return wrapper


try_invoke_method = _lenient(invoke_method)
try_invoke_static = _lenient(invoke_static)
try_get_field = _lenient(get_field)
try_set_field = _lenient(set_field)
try_overwrite_field = _lenient(overwrite_field)
try_overwrite_static = _lenient(overwrite_static)
try_invoke = _lenient(invoke)
try_overwrite = _lenient(overwrite)
try_get = try_get_field
try_set = try_set_field


class Ajar:
    """Class-style access to the accessor functions.

    Ajar.invoke(target, "_hoge") is the same call as invoke(target, "_hoge").
    The class is a namespace only and cannot be instantiated. object.__new__(Ajar)
    bypasses __new__ and cannot be prevented, but initialising the resulting
    object still fails.
    """

    invoke = staticmethod(invoke)
    invoke_method = staticmethod(invoke_method)
    invoke_static = staticmethod(invoke_static)
    get = staticmethod(get_field)
    set = staticmethod(set_field)
    overwrite = staticmethod(overwrite)
    overwrite_field = staticmethod(overwrite_field)
    overwrite_static = staticmethod(overwrite_static)
    attempt = staticmethod(attempt)

    try_invoke = staticmethod(try_invoke)
    try_invoke_method = staticmethod(try_invoke_method)
    try_invoke_static = staticmethod(try_invoke_static)
    try_get = staticmethod(try_get_field)
    try_set = staticmethod(try_set_field)
    try_overwrite = staticmethod(try_overwrite)
    try_overwrite_field = staticmethod(try_overwrite_field)
    try_overwrite_static = staticmethod(try_overwrite_static)

    def __new__(cls, *args, **kwargs):
        # no instance
        raise ConstructionForbidden(cls.__name__, "no instance!")

    def __init__(self, *args, **kwargs):
        raise ConstructionForbidden(type(self).__name__, "no instance!")


__all__ = [
    "AccessResult",
    "Ajar",
    "attempt",
    "get",
    "get_field",
    "invoke",
    "invoke_method",
    "invoke_static",
    "overwrite",
    "overwrite_field",
    "overwrite_static",
    "set",
    "set_field",
    "try_get",
    "try_get_field",
    "try_invoke",
    "try_invoke_method",
    "try_invoke_static",
    "try_overwrite",
    "try_overwrite_field",
    "try_overwrite_static",
    "try_set",
    "try_set_field",
]
