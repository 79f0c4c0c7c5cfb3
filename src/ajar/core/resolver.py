"""
Member Resolver for Ajar

Looks up methods and fields by name on a class, an instance or a module,
the way the compiler would have named them (including private name
mangling), and hands back short-lived handles that know how to bind, read
and write the member. Nothing here is cached: every call walks the
namespaces again.
"""

import inspect
import logging
from dataclasses import dataclass, field, replace
from functools import singledispatchmethod
from types import GetSetDescriptorType, MemberDescriptorType, ModuleType
from typing import Any, Callable, Iterator, List, Optional, Sequence

from ..config import Config
from .errors import AccessDenied, MemberNotFound

logger = logging.getLogger("ajar.resolver")

FIELD_DESCRIPTORS = (MemberDescriptorType, GetSetDescriptorType)
METHOD_WRAPPERS = (staticmethod, classmethod, singledispatchmethod)


def mangle(owner: Any, name: str) -> Optional[str]:
    """Return the private name the compiler would produce inside owner, if any."""
    if not isinstance(owner, type):
        return None
    if not name.startswith("__") or name.endswith("__"):
        return None
    stripped = owner.__name__.lstrip("_")
    if not stripped:
        return None
    return f"_{stripped}{name}"


def declaring_owners(owner: Any) -> List[Any]:
    """Namespaces searched for a member of owner, most derived first."""
    if isinstance(owner, type) and Config.get("search_bases", False):
        return [cls for cls in owner.__mro__ if cls is not object]
    return [owner]


def candidate_names(owner: Any, name: str) -> Iterator[str]:
    """Names under which a member called name may be stored on owner."""
    yield name
    if Config.get("resolve_mangled", True):
        mangled = mangle(owner, name)
        if mangled is None and not name.startswith("_"):
            # Private member given by the name written after the two underscores
            mangled = mangle(owner, f"__{name}")
        if mangled:
            yield mangled


def namespace_of(obj: Any) -> Optional[dict]:
    """Return the attribute dictionary of obj without running its hooks."""
    try:
        return object.__getattribute__(obj, "__dict__")
    except AttributeError:
        return None


def _is_method(raw: Any) -> bool:
    return isinstance(raw, METHOD_WRAPPERS) or callable(raw)


def _dispatcher(raw: Any) -> Optional[Any]:
    """Return the singledispatch registry behind raw, if raw is overloaded."""
    if isinstance(raw, singledispatchmethod):
        return raw.dispatcher
    if isinstance(raw, staticmethod):
        raw = raw.__func__
    if callable(getattr(raw, "dispatch", None)) and hasattr(raw, "registry"):
        return raw
    return None


def _accepts(raw: Any, skip: int, arg_types: Sequence[type]) -> bool:
    """Check that raw can take positional arguments of arg_types."""
    func = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures accept anything
        return True

    params = list(signature.parameters.values())[skip:]
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    variadic = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
    # Defaulted parameters count: the types describe the full signature
    if len(arg_types) < len(positional):
        return False
    if len(arg_types) > len(positional) and not variadic:
        return False

    for param, arg_type in zip(positional, arg_types):
        annotation = param.annotation
        if isinstance(annotation, type) and isinstance(arg_type, type):
            if not issubclass(arg_type, annotation):
                return False
    return True


@dataclass
class MethodHandle:
    """A method found on a class or module."""

    owner: Any
    name: str
    requested: str
    raw: Any
    static: bool

    def bind(self, receiver: Any = None) -> Callable:
        """Return a callable for this method bound to receiver (or to nothing)."""
        raw = self.raw
        if isinstance(self.owner, ModuleType) or not hasattr(raw, "__get__"):
            return raw
        try:
            if self.static:
                return raw.__get__(None, self.owner)
            return raw.__get__(receiver, type(receiver))
        except (AttributeError, TypeError) as e:
            raise AccessDenied(self.requested, f"illegal access to {self.requested}: {e}") from e

    @property
    def validates_arguments(self) -> bool:
        """Whether the bound callable's signature reflects what it accepts."""
        return _dispatcher(self.raw) is None


@dataclass
class FieldHandle:
    """A field found on an instance, a class or a module."""

    owner: Any
    name: str
    requested: str
    storage: str  # instance, slot, class, static
    descriptor: Any = None
    unlocked: bool = False
    setter: Optional[Callable[[Any, Any], None]] = field(default=None, repr=False)

    def read(self, target: Any = None) -> Any:
        """Read the current value."""
        if self.storage in ("class", "static"):
            return namespace_of(self.owner)[self.name]
        if self.storage == "slot":
            try:
                return self.descriptor.__get__(target, type(target))
            except AttributeError as e:
                # Declared slot that was never assigned
                raise MemberNotFound(self.requested, f"no value in field {self.requested}") from e
        return namespace_of(target)[self.name]

    def write(self, target: Any, value: Any) -> None:
        """Write value, honouring protection unless the handle is unlocked."""
        receiver = self.owner if self.storage == "static" else target
        setter = self.setter if self.unlocked else _guarded_setter(self.name)
        try:
            setter(receiver, value)
        except (AttributeError, TypeError) as e:
            raise AccessDenied(self.requested, f"illegal access to {self.requested}: {e}") from e


def _guarded_setter(name: str) -> Callable[[Any, Any], None]:
    def assign(receiver, value):
        setattr(receiver, name, value)

    return assign


class MemberResolver:
    """Resolve methods and fields by name. Stateless."""

    def resolve_method(
        self,
        owner: Any,
        name: str,
        arg_types: Optional[Sequence[type]] = None,
        static: bool = False,
    ) -> MethodHandle:
        """Find the method called name declared on owner.

        When arg_types is given it selects among overloads: the registered
        implementation of a singledispatch method, or otherwise a method whose
        positional parameters accept those types.
        """
        for declaring in declaring_owners(owner):
            namespace = namespace_of(declaring)
            if namespace is None:
                continue
            for candidate in candidate_names(declaring, name):
                if candidate not in namespace:
                    continue
                raw = namespace[candidate]
                if not _is_method(raw):
                    continue

                if arg_types is None:
                    return MethodHandle(declaring, candidate, name, raw, static)

                dispatcher = _dispatcher(raw)
                if dispatcher is not None:
                    if not arg_types:
                        continue
                    impl = dispatcher.dispatch(arg_types[0])
                    if isinstance(raw, staticmethod):
                        impl = staticmethod(impl)
                    return MethodHandle(declaring, candidate, name, impl, static)

                skip = self._receiver_slots(raw, declaring, static)
                if _accepts(raw, skip, arg_types):
                    return MethodHandle(declaring, candidate, name, raw, static)

        logger.debug(f"no method {name} on {owner!r} for {arg_types!r}")
        raise MemberNotFound(name, f"no such method {name}")

    def resolve_field(self, owner: Any, name: str, target: Any = None) -> FieldHandle:
        """Find the field called name.

        With target given the field is looked up as an instance field of
        target (owner being its type); otherwise owner itself holds it.
        """
        instance = target is not None
        if instance:
            namespace = namespace_of(target)
            if namespace is not None:
                # A class or module used as an instance stores mangled names under its own name
                scopes = [target] if isinstance(target, type) else declaring_owners(owner)
                for scope in scopes:
                    for candidate in candidate_names(scope, name):
                        if candidate in namespace:
                            return FieldHandle(owner, candidate, name, "instance")

            for declaring in declaring_owners(owner):
                for candidate in candidate_names(declaring, name):
                    raw = namespace_of(declaring).get(candidate)
                    if isinstance(raw, FIELD_DESCRIPTORS):
                        return FieldHandle(declaring, candidate, name, "slot", descriptor=raw)
                    if candidate in namespace_of(declaring) and not hasattr(raw, "__get__"):
                        # Class-level default not yet shadowed on the instance
                        return FieldHandle(declaring, candidate, name, "class")
        else:
            for declaring in declaring_owners(owner):
                namespace = namespace_of(declaring)
                if namespace is None:
                    continue
                for candidate in candidate_names(declaring, name):
                    if candidate in namespace and not self._is_static_method(namespace[candidate]):
                        return FieldHandle(declaring, candidate, name, "static")

        logger.debug(f"no field {name} on {target if instance else owner!r}")
        raise MemberNotFound(name, f"no such field {name}")

    @staticmethod
    def _receiver_slots(raw: Any, declaring: Any, static: bool) -> int:
        """Number of leading parameters filled in by binding."""
        if isinstance(raw, staticmethod) or isinstance(declaring, ModuleType):
            return 0
        if isinstance(raw, classmethod):
            return 1
        if inspect.isfunction(raw) and not static:
            return 1
        return 0

    @staticmethod
    def _is_static_method(raw: Any) -> bool:
        return inspect.isroutine(raw) or isinstance(raw, METHOD_WRAPPERS)


class FieldMutabilityOverride:
    """Strip reassignment protection from a field handle."""

    def unlock(self, handle: FieldHandle) -> FieldHandle:
        """Return a copy of handle whose writes bypass __setattr__ guards."""
        if handle.unlocked:
            return handle
        name = handle.name

        if handle.storage in ("instance", "class"):

            def setter(receiver, value):
                namespace = namespace_of(receiver)
                if namespace is None:
                    raise AttributeError(f"{type(receiver).__name__} has no instance dictionary")
                namespace[name] = value

        elif handle.storage == "slot":
            descriptor = handle.descriptor

            def setter(receiver, value):
                descriptor.__set__(receiver, value)

        elif isinstance(handle.owner, type):

            def setter(receiver, value):
                type.__setattr__(receiver, name, value)

        else:

            def setter(receiver, value):
                namespace_of(receiver)[name] = value

        return replace(handle, unlocked=True, setter=setter)
