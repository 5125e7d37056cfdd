"""
Argbind command layer: register handlers and run them against tokens.

What this module provides
- App: a registry of handlers addressed by whitespace-separated command paths,
  plus the invocation pipeline that turns raw tokens into a handler call:
  • Longest-prefix resolution of the command path (root handler as fallback).
  • Help triggers ("-h", "--help", "help" first; "-h", "--help" right after the path).
  • Record mode (any parameter is a record) and positional mode binding.
  • One failure path for binding faults and handler-returned errors: raised
    to the caller, or rendered to the error sink followed by SystemExit(1).

- Helpers:
  • invoke(obj, prompt): convenience runner for Apps or plain callables.

Quick start
    from argbind import App

    app = App(prog="calc")

    @app.command("add", help="add two integers")
    def add(a: int, b: int):
        print(a + b)

    app.run(["add", "2", "3"])      # prints 5
    app.run("add 2 3")              # same, split shell-style

Design notes
- Handlers are described once, at registration (signature, kinds, records,
  whether they return an error); mistakes raise InvalidRegistrationError right
  away instead of surfacing on the first run.
- Exceptions a handler raises propagate untouched; only returned errors join
  the failure path.

See also
- argbind.binder for the record binding rules.
- argbind.faults for fault codes and rendering behavior.
"""
import functools
import logging
import operator
import re
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .binder import bind
from .faults import *
from .kinds import coerce
from .registry import Registry, describe
from .rendering import render_command, render_global
from .utils import *

logger = logging.getLogger(__name__)

_HELP = frozenset({"-h", "--help"})


def _argv():
    return sys.argv[1:]


class AppType(type):
    """
    Metaclass giving App its read-only configuration properties and reprs.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent labels in error messages.
    - every name in __introspectable__ becomes a property mirroring "_" + name.
    - __displayable__ (if set) narrows which properties __rich_repr__ shows.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class App(metaclass=AppType):
    """
    Command registry and runner.

    Options (keyword-only, exposed as read-only properties)
    - exit_on_failure: bool, render failures to the error sink and exit(1)
      instead of raising them.
    - stdout / stderr: writable text sinks (standard streams when Unset).
    - prog: program name used in root usage lines and fault headers.
    - argv: zero-argument callable supplying tokens when run() gets none.
    - colorful / fancy: palette and panel framing for help and faults.
    """

    __introspectable__ = (
        "prog",
        "exit_on_failure",
        "colorful",
        "fancy",
        "stdout",
        "stderr",
        "argv",
    )

    __displayable__ = (
        "prog",
        "commands",
        "exit_on_failure",
        "colorful",
        "fancy",
    )

    def __init__(
            self,
            *,
            exit_on_failure=False,
            stdout=Unset,
            stderr=Unset,
            prog="command",
            argv=Unset,
            colorful=False,
            fancy=False
    ):
        for name, object in (("exit_on_failure", exit_on_failure), ("colorful", colorful), ("fancy", fancy)):
            if not isinstance(object, bool):
                raise TypeError(f"{type(self).__typename__} {name!r} must be a boolean")
        for name, object in (("stdout", stdout), ("stderr", stderr)):
            if object is not Unset and not callable(getattr(object, "write", None)):
                raise TypeError(f"{type(self).__typename__} {name!r} must be a writable text stream")
        if not isinstance(prog, str):
            raise TypeError(f"{type(self).__typename__} 'prog' must be a string")
        elif not (prog := prog.strip()):
            raise ValueError(f"{type(self).__typename__} 'prog' cannot be empty")
        if argv is not Unset and not callable(argv):
            raise TypeError(f"{type(self).__typename__} 'argv' must be a callable returning tokens")

        self._exit_on_failure = exit_on_failure
        self._colorful = colorful
        self._fancy = fancy
        self._stdout = coalesce(stdout)
        self._stderr = coalesce(stderr)
        self._prog = prog
        self._argv = coalesce(argv, _argv)
        self._registry = Registry()

        # file=None lets rich pick the current standard stream at print time
        options = dict(highlight=False, markup=False, emoji=False, soft_wrap=True)
        self._out = Console(file=self._stdout, **options)
        self._err = Console(file=self._stderr, stderr=True, **options)

    @classmethod
    def default(cls, **options):
        """
        App configured for a process entry point: failures exit with status 1.
        """
        options.setdefault("exit_on_failure", True)
        return cls(**options)

    @property
    def root(self):
        """
        Handler registered under the empty path, or None.
        """
        return self._registry.root

    @property
    def commands(self):
        """
        registered (non-root) command names, in registration order.
        """
        return tuple(handler.name for handler in self._registry)

    def add(self, path, /, *rest):
        """
        Register a handler.

        Forms
        - add(path, handler)
        - add(path, help, handler)

        An empty (or whitespace-only) path registers the root handler.

        Returns
        - the registry Handler describing the callable.

        Raises
        - InvalidRegistrationError: any other argument shape, a non-string path
          or help, a non-callable or variadic handler, a duplicate path.
        """
        match rest:
            case (handler,):
                help = Unset
            case (help, handler):
                if not isinstance(help, str):
                    raise InvalidRegistrationError("add() help must be a string")
                help = help.strip() or None
            case _:
                raise InvalidRegistrationError(
                    "add() takes a path, an optional help string and a handler (%d arguments given)" % (len(rest) + 1)
                )
        if not isinstance(path, str):
            raise InvalidRegistrationError("add() path must be a string")
        return self._registry.add(describe(tuple(path.split()), handler, help))

    def command(self, path="", /, *, help=Unset):
        """
        Decorator form of add().

            @app.command("repo create", help="create a repository")
            def create(options: CreateOptions): ...

        The decorated callable is returned unchanged.
        """
        @rename("command")
        def wrapper(callback, /):
            if help is Unset:
                self.add(path, callback)
            else:
                self.add(path, help, callback)
            return callback

        return wrapper

    def _tokenize(self, tokens):
        if tokens is Unset:
            tokens = self._argv()
        if isinstance(tokens, str):
            return shlex.split(tokens)
        if not isinstance(tokens, Iterable):
            raise TypeError("run() argument must be a string or an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("run() argument must be a string or an iterable of strings")
        return tokens

    def _help(self, handler=None):
        options = dict(colorful=self.colorful, fancy=self.fancy)
        if handler is None:
            handler = self._registry.root
        if handler is None:
            render_global(self._out, self._registry, **options)
        else:
            render_command(self._out, handler, self._registry, prog=self.prog, **options)

    def _bind_records(self, handler, tokens):
        name = handler.name or self.prog
        arguments = []
        cursor = 0
        for index, param in enumerate(handler.params):
            if param.record is not None:
                try:
                    value, consumed = bind(tokens[cursor:], param.record)
                except BindingError as fault:
                    raise type(fault)(
                        "failed to bind %s argument of %s: %s" % (ordinal(index + 1), name, fault.message),
                        **(dict(fault.options) | {"command": name})
                    ) from None
                cursor += consumed
            else:
                if cursor >= len(tokens):
                    raise InsufficientArgsError(
                        "not enough arguments for %s: want %d, got %d" % (name, len(handler.params), len(tokens)),
                        command=name,
                        position=index,
                        hint="run '%s --help' to see the expected arguments" % name,
                    )
                value = self._coerce(handler, index, tokens[cursor])
                cursor += 1
            arguments.append(value)
        if cursor < len(tokens):
            logger.debug("ignoring %d trailing token(s) for %r", len(tokens) - cursor, name)
        return arguments

    def _bind_positionals(self, handler, tokens):
        name = handler.name or self.prog
        for token in tokens:
            if token.startswith("--"):
                raise UnknownOptionError(
                    "unknown option: %s" % token,
                    command=name,
                    input=token,
                    hint="%s takes positional arguments only" % name,
                )
        if len(tokens) != len(handler.params):
            raise ArgCountMismatchError(
                "wrong number of arguments for %s: want %d, got %d" % (name, len(handler.params), len(tokens)),
                command=name,
                hint="run '%s --help' to see the expected arguments" % name,
            )
        return [self._coerce(handler, index, token) for index, token in enumerate(tokens)]

    def _coerce(self, handler, index, token):
        param = handler.params[index]
        name = handler.name or self.prog
        try:
            return coerce(token, param.kind if param.kind is not None else param.annotation)
        except BindingError as fault:
            raise type(fault)(
                "failed to parse %s argument (%s) of %s: %s" % (ordinal(index + 1), param.name, name, fault.message),
                **(dict(fault.options) | {"command": name, "field": param.name})
            ) from None

    def _prepare(self, tokens):
        """
        Resolve and bind tokens; None when a help screen was rendered instead.
        """
        if not tokens or tokens[0] in _HELP | {"help"}:
            self._help()
            return None

        try:
            length, handler = self._registry.resolve(tokens)
        except UnknownCommandError as fault:
            raise fault.__replace__(hint="run '%s --help' to see available commands" % self.prog) from None

        rest = tokens[length:]
        if rest and rest[0] in _HELP:
            self._help(handler)
            return None

        if handler.records:
            arguments = self._bind_records(handler, rest)
        else:
            arguments = self._bind_positionals(handler, rest)

        args = []
        kwargs = {}
        for param, value in zip(handler.params, arguments):
            if param.keyword:
                kwargs[param.name] = value
            else:
                args.append(value)
        return handler, args, kwargs

    def _fail(self, failure, handler=None):
        if not isinstance(failure, BindingError):
            if not self.exit_on_failure:
                raise failure
            name = handler.name or self.prog
            failure = HandlerError(
                str(failure) or type(failure).__name__,
                command=name,
                exception=failure,
                hint="%s reported %s" % (name, type(failure).__name__),
            )
        trigger(
            failure,
            console=self._err,
            prog=self.prog,
            colorful=self.colorful,
            fancy=self.fancy,
            exit_on_failure=self.exit_on_failure,
        )

    def run(self, tokens=Unset, /):
        """
        Run the handler addressed by tokens.

        Parameters
        - tokens:
          • Unset: ask the argv provider (sys.argv[1:] by default).
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Returns
        - None on success (including help screens).

        Raises
        - BindingError subclasses, or the error the handler returned; when
          exit_on_failure is set they are rendered to stderr and SystemExit(1)
          is raised instead.
        - TypeError: tokens is not a string or an iterable of strings.
        """
        tokens = self._tokenize(tokens)
        logger.debug("running %s with %r", self.prog, tokens)

        try:
            prepared = self._prepare(tokens)
        except BindingError as fault:
            return self._fail(fault)
        if prepared is None:
            return None

        handler, args, kwargs = prepared
        result = handler.callback(*args, **kwargs)
        if handler.expects_error and result is not None:
            if not isinstance(result, BaseException):
                raise TypeError(f"handler {handler.name or self.prog!r} returned a non-exception value")
            return self._fail(result, handler)
        return None

    def __invoke__(self, prompt=Unset):
        self.run(prompt)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for Apps or callables.

    Parameters
    - object: an instance providing __invoke__(prompt) or a plain callable.
    - prompt:
      • Unset: read sys.argv[1:].
      • str: split with shlex.split.
      • Iterable[str]: use items as tokens (each must be str).

    Behavior
    - If 'object' implements __invoke__, call it with prompt.
    - If 'object' is a plain callable, register it as the root handler of a
      fresh App.default() (failures exit with status 1) and run that.

    Raises
    - TypeError: when 'object' cannot be invoked via the above contract.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        object.__invoke__(prompt)
        return

    if callable(object):
        app = App.default(prog=getattr(object, "__name__", "command"))
        app.add("", object)
        return invoke(app, prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "App",
    "invoke",
)

del AppType
