"""Test fixtures for Ajar tests."""

import os
from dataclasses import dataclass
from functools import singledispatchmethod
from types import ModuleType

import pytest

from ajar import Config, get_diagnostic_log


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Start every test from default configuration."""
    for key in list(os.environ):
        if key.startswith("AJAR_"):
            monkeypatch.delenv(key)
    Config.reset()
    yield
    Config.reset()


@pytest.fixture(autouse=True)
def clean_diagnostics():
    """Empty the diagnostic buffer around each test."""
    get_diagnostic_log().clear()
    yield
    get_diagnostic_log().clear()


class InvocationTarget:
    """Object with hidden methods and fields."""

    BRAND = "generic"

    def __init__(self):
        self._piyo = "piyo"
        self.__secret = "secret"

    def _hoge(self):
        return "hogehogehoge"

    def __mangled(self):
        return "mangled"

    @staticmethod
    def _fuga():
        return "fugafugafuga"

    @classmethod
    def _kind(cls):
        return cls.__name__

    def _add(self, x: int, y: int) -> int:
        return x + y

    def _boom(self):
        raise ValueError("boom")


@pytest.fixture
def target():
    """A fresh InvocationTarget."""
    return InvocationTarget()


@pytest.fixture
def target_class():
    return InvocationTarget


@pytest.fixture
def formatter():
    """Object with an overloaded hidden method."""

    class Formatter:
        @singledispatchmethod
        def _format(self, value):
            return f"object:{value}"

        @_format.register
        def _(self, value: int):
            return f"int:{value}"

        @_format.register
        def _(self, value: str):
            return f"str:{value}"

    return Formatter()


@pytest.fixture
def frozen():
    """Frozen dataclass instance whose fields refuse reassignment."""

    @dataclass(frozen=True)
    class Credentials:
        _token: str = "old-token"

    return Credentials()


@pytest.fixture
def guarded():
    """Instance whose __setattr__ refuses every write."""

    class Guarded:
        def __init__(self):
            object.__setattr__(self, "_state", "initial")

        def __setattr__(self, name, value):
            raise AttributeError(f"{name} is read-only")

    return Guarded()


@pytest.fixture
def slotted():
    """Instance storing its fields in __slots__."""

    class Slotted:
        __slots__ = ("_value", "_unset", "__hidden")

        def __init__(self):
            self._value = 1
            self.__hidden = "hidden"

    return Slotted()


@pytest.fixture
def build_class():
    """A fresh class whose metaclass refuses to reassign upper-case constants."""

    class FinalMeta(type):
        def __setattr__(cls, name, value):
            if name.isupper():
                raise AttributeError(f"cannot reassign constant {name}")
            super().__setattr__(name, value)

    class Build(metaclass=FinalMeta):
        BRAND = "generic"
        _counter = 0

        @staticmethod
        def describe():
            return f"brand={Build.BRAND}"

    return Build


@pytest.fixture
def platform_module():
    """A throwaway module with a constant and a hidden function reading it."""
    module = ModuleType("fake_platform")
    source = "BRAND = 'generic'\n\ndef _describe():\n    return 'brand=' + BRAND\n"
    exec(source, module.__dict__)
    return module
