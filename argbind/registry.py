"""
Command registry and resolver.

- Handler: immutable descriptor of a registered callable, built once from its
  signature (parameter kinds or record types, whether it returns an error,
  help text).
- Registry: handlers keyed by their whitespace-tokenized path. The empty path
  holds the root handler. resolve(tokens) picks the handler whose path is the
  longest token-by-token prefix of the input.
"""
import inspect
import logging
import typing
from dataclasses import dataclass
from inspect import Parameter
from types import MappingProxyType

from . import kinds
from .faults import InvalidRegistrationError, UnknownCommandError
from .fields import extract, is_record
from .kinds import Kind
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Param:
    """
    one handler parameter.

    - kind: a Kind, None for an unsupported annotation, or unused when record is set.
    - record: the record type when the parameter binds a record.
    - keyword: keyword-only parameter (passed by name on invocation).
    """
    name: str
    kind: Kind | None
    annotation: typing.Any
    record: type | None = None
    keyword: bool = False

    @property
    def label(self):
        return kinds.label(self.kind)


@dataclass(frozen=True, slots=True)
class Handler:
    """
    Registered callable plus everything derived from its signature.

    Fields
    - path: tuple of name tokens (empty for the root handler).
    - callback: the callable itself.
    - params: ordered Param descriptors.
    - expects_error: the return annotation is an exception type (or optional one);
      a non-None return value is then the failure of the call.
    - help: help text (explicit, else the first docstring line, else None).
    """
    path: tuple
    callback: typing.Callable
    params: tuple
    expects_error: bool
    help: str | None

    @property
    def name(self):
        return " ".join(self.path)

    @property
    def records(self):
        """
        True when any parameter binds a record (record mode).
        """
        return any(param.record is not None for param in self.params)


def _is_error(annotation):
    annotation, _ = kinds.unwrap(annotation)
    return isinstance(annotation, type) and issubclass(annotation, BaseException)


def describe(path, callback, help=Unset, /):
    """
    Build the Handler for a callback registered under path.

    Raises
    - InvalidRegistrationError: non-callable, uninspectable signature,
      variadic parameters, or annotations that cannot be resolved.
    """
    if not callable(callback):
        raise InvalidRegistrationError("handler for %r must be callable" % " ".join(path))
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        raise InvalidRegistrationError("handler for %r must have an inspectable signature" % " ".join(path)) from None
    try:
        hints = typing.get_type_hints(callback)
    except NameError as exception:
        raise InvalidRegistrationError(
            "handler for %r has unresolvable annotations (%s)" % (" ".join(path), exception)
        ) from None
    except TypeError:
        hints = {}

    params = []
    for parameter in signature.parameters.values():
        if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            raise InvalidRegistrationError(
                "handler for %r cannot take variadic parameter %r" % (" ".join(path), parameter.name)
            )
        annotation = hints.get(parameter.name, parameter.annotation)
        keyword = parameter.kind is Parameter.KEYWORD_ONLY
        if is_record(annotation):
            extract(annotation)
            params.append(Param(parameter.name, None, annotation, annotation, keyword))
        else:
            params.append(Param(parameter.name, kinds.resolve(annotation), annotation, None, keyword))

    returns = hints.get("return", signature.return_annotation)
    doc = inspect.getdoc(callback)
    return Handler(
        path=tuple(path),
        callback=callback,
        params=tuple(params),
        expects_error=_is_error(returns),
        help=coalesce(help, doc.splitlines()[0] if doc else None),
    )


class Registry:
    """
    Handlers by path, in registration order.

    Invariant: a path token matches an input token only on exact equality.
    """

    def __init__(self):
        self._handlers = {}
        self._root = None

    @property
    def root(self):
        return self._root

    @property
    def handlers(self):
        """
        non-root handlers by path, in registration order (read-only view).
        """
        return MappingProxyType(self._handlers)

    def __len__(self):
        return len(self._handlers)

    def __iter__(self):
        return iter(self._handlers.values())

    def add(self, handler, /):
        if not handler.path:
            if self._root is not None:
                raise InvalidRegistrationError("root handler is already registered")
            self._root = handler
        elif self._handlers.setdefault(handler.path, handler) is not handler:
            raise InvalidRegistrationError("command %r is already registered" % handler.name)
        logger.debug("registered %r with %d parameter(s)", handler.name or "(root)", len(handler.params))
        return handler

    def resolve(self, tokens, /):
        """
        Pick the handler for an input token sequence.

        Returns
        - (length, handler): number of leading tokens that named the command, and
          its handler. The root handler matches with length 0 when no path does.

        Raises
        - UnknownCommandError: nothing matches and there is no root handler.
        """
        best, length = None, 0
        for path, handler in self._handlers.items():
            if len(path) > len(tokens) or len(path) <= length:
                continue
            if all(name == token for name, token in zip(path, tokens)):
                best, length = handler, len(path)

        if best is None:
            if self._root is None:
                first = tokens[0] if tokens else ""
                raise UnknownCommandError(
                    "unknown command: %s" % first,
                    input=first,
                    hint="run '--help' to see available commands",
                )
            best = self._root

        logger.debug("resolved %r to %r (%d token(s))", list(tokens), best.name or "(root)", length)
        return length, best


__all__ = (
    "Param",
    "Handler",
    "Registry",
    "describe",
)
