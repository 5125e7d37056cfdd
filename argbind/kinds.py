"""
Primitive kinds and token coercion.

Every value the binder produces is one of five semantic kinds. Handlers and
record fields declare them through ordinary annotations:

    str      -> Kind.STRING
    int      -> Kind.INT
    int64    -> Kind.INT64      (argbind.int64 marker)
    float    -> Kind.FLOAT64    (float64 marker is accepted as well)
    bool     -> Kind.BOOL

coerce(token, kind) converts one raw token; it either returns a fully parsed
value or raises (MalformedValueError / UnsupportedTypeError), never a partial
result.
"""
import functools
import math
import re
import types
import typing
from enum import Enum
from inspect import Parameter
from typing import NewType

from .faults import MalformedValueError, UnsupportedTypeError

int64 = NewType("int64", int)
float64 = NewType("float64", float)

_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1

_integer = re.compile(r"[+-]?[0-9]+", re.ASCII)
_decimal = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.ASCII | re.IGNORECASE
)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class Kind(Enum):
    STRING = "string"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    BOOL = "bool"

    @property
    def label(self):
        return "<%s>" % self.value

    @property
    def zero(self):
        """
        value a non-nullable field holds before any token is bound to it.
        """
        return _zeros[self]


_zeros = {
    Kind.STRING: "",
    Kind.INT: 0,
    Kind.INT64: 0,
    Kind.FLOAT64: 0.0,
    Kind.BOOL: False,
}

_annotations = {
    str: Kind.STRING,
    int: Kind.INT,
    int64: Kind.INT64,
    float: Kind.FLOAT64,
    float64: Kind.FLOAT64,
    bool: Kind.BOOL,
}


def _malformed(token, kind):
    return MalformedValueError(
        "malformed %s value %r" % (kind.value, token),
        token=token,
        kind=kind,
        hint="pass a valid %s, for example %s" % (kind.value, {
            Kind.INT: "42",
            Kind.INT64: "9000000000",
            Kind.FLOAT64: "3.14",
            Kind.BOOL: "true",
        }.get(kind, "'text'")),
    )


def _integral(token, kind):
    if not _integer.fullmatch(token):
        raise _malformed(token, kind)
    value = int(token, 10)
    if not _INT_MIN <= value <= _INT_MAX:
        raise _malformed(token, kind)
    return value


def _floating(token, kind):
    if not _decimal.fullmatch(token):
        raise _malformed(token, kind)
    value = float(token)
    # finite spellings that overflow
    if math.isinf(value) and "inf" not in token.lower():
        raise _malformed(token, kind)
    return value


def _boolean(token, kind):
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    raise _malformed(token, kind)


_parsers = {
    Kind.STRING: lambda token, kind: token,
    Kind.INT: _integral,
    Kind.INT64: _integral,
    Kind.FLOAT64: _floating,
    Kind.BOOL: _boolean,
}


def coerce(token, kind, /):
    """
    Convert one raw token into a value of the given kind.

    Raises
    - TypeError: token is not a string.
    - UnsupportedTypeError: kind is not one of the five Kind members.
    - MalformedValueError: token does not spell a value of that kind.
    """
    if not isinstance(token, str):
        raise TypeError("coerce() first argument must be a string")
    try:
        parser = _parsers[kind]
    except (KeyError, TypeError):
        raise UnsupportedTypeError(
            "unsupported parameter type: %s" % describe(kind),
            kind=kind,
            hint="use str, int, int64, float or bool",
        ) from None
    return parser(token, kind)


def describe(kind, /):
    """
    printable name for a kind or for an unrecognized annotation.
    """
    if isinstance(kind, Kind):
        return kind.value
    return getattr(kind, "__qualname__", None) or repr(kind)


def label(kind, /):
    """
    help label for a kind; anything unrecognized renders as <value>.
    """
    return kind.label if isinstance(kind, Kind) else "<value>"


def unwrap(annotation, /):
    """
    Split an annotation into (inner, nullable).

    `X | None` and `Optional[X]` are nullable; any other union is returned as-is
    (and will not resolve to a kind).
    """
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        members = [member for member in typing.get_args(annotation) if member is not type(None)]
        if len(members) == 1 and len(typing.get_args(annotation)) == 2:
            return members[0], True
    return annotation, False


@functools.cache
def _resolve(annotation):
    return _annotations.get(annotation)


def resolve(annotation, /):
    """
    Map an annotation onto a Kind.

    - Missing annotations (inspect's empty marker) resolve to Kind.STRING.
    - Unrecognized annotations resolve to None; coercing into them fails later
      with UnsupportedTypeError, and help renders them as <value>.
    """
    if annotation is Parameter.empty:
        return Kind.STRING
    try:
        return _resolve(annotation)
    except TypeError:  # unhashable annotation objects
        return None


__all__ = (
    "Kind",
    "int64",
    "float64",
    "coerce",
)
