"""
Argbind faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- BindingError / BindingWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (raise it, or render it
  to the error sink and request exit, depending on the options given).

UX goals
- Short titles, one-sentence bodies, a single clear hint.
- Position-first messages where a position exists ("at second position").

Integration
- The binding layers raise faults with their context in `options`.
- The App merges runtime options (prog, console, colorful, fancy,
  exit_on_failure) with trigger(fault, **options).
- Without exit_on_failure the fault is raised; with it, it is rendered through
  the App's error console and SystemExit(1) is raised.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the binder (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND
    - options (1111x)
      • UNKNOWN_OPTION, MISSING_OPTION_VALUE
    - positionals (1112x)
      • INSUFFICIENT_ARGS, ARG_COUNT_MISMATCH
    - values (1113x)
      • MALFORMED_VALUE, UNSUPPORTED_TYPE
    - handler (1114x)
      • HANDLER_FAILURE
    - registration (1115x)
      • INVALID_REGISTRATION
    - warnings (12xxx)
      • SHADOWED_OPTION, POSITIONAL_GAP
    """
    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101

    # --- option errors ---
    UNKNOWN_OPTION              = 11111
    MISSING_OPTION_VALUE        = 11112

    # --- positional errors ---
    INSUFFICIENT_ARGS           = 11121
    ARG_COUNT_MISMATCH          = 11122

    # --- value errors ---
    MALFORMED_VALUE             = 11131
    UNSUPPORTED_TYPE            = 11132

    # --- delegated errors ---
    HANDLER_FAILURE             = 11141

    # --- configuration errors ---
    INVALID_REGISTRATION        = 11151

    # --- warnings ---
    SHADOWED_OPTION             = 12111
    POSITIONAL_GAP              = 12121

    def normalize(self):
        """
        return the code as a string for headers and logs.
        """
        return str(self.value)


_styles = {
    # header parts
    "prog-name": "bold #E6E6F0",  # near-white program name
    "code": "bold #00E5FF",  # neon cyan fault code
    "error-title": "bold #FF4DA6",  # friendly pinky title

    # body
    "error-message": "#C8C8D0",  # soft light gray message
    "hint-arrow": "#9CE19C dim",  # gentle green arrow
    "hint": "italic #9CE19C",  # gentle green hint text
}


class BindingError(Exception):
    """
    base class for every fault raised while registering, resolving or binding.

    options
    - title, code, hint: rendering metadata (class defaults when omitted).
    - any context the raise site wants to expose (token, kind, command, input, ...).
    - runtime options merged by trigger(): prog, console, colorful, fancy,
      exit_on_failure.
    """
    __code__ = Unset
    __title__ = "binding error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "title": type(self).__title__,
            "code": type(self).__code__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, _styles)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        code = self.options["code"]
        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", "argbind"), styler("prog-name")),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "", styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if self.hint:
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("exit_on_failure"):
            raise self from None
        console = self.options["console"]
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(BindingError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"


class UnknownOptionError(BindingError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class MissingOptionValueError(BindingError):
    __code__ = FaultCode.MISSING_OPTION_VALUE
    __title__ = "missing option value"


class PositionalCountError(BindingError):
    """
    common base for positional count failures (record-positional and pure positional).
    """
    __title__ = "wrong number of arguments"


class InsufficientArgsError(PositionalCountError):
    __code__ = FaultCode.INSUFFICIENT_ARGS
    __title__ = "not enough arguments"


class ArgCountMismatchError(PositionalCountError):
    __code__ = FaultCode.ARG_COUNT_MISMATCH


class MalformedValueError(BindingError, ValueError):
    __code__ = FaultCode.MALFORMED_VALUE
    __title__ = "malformed value"


class UnsupportedTypeError(BindingError, TypeError):
    __code__ = FaultCode.UNSUPPORTED_TYPE
    __title__ = "unsupported type"


class HandlerError(BindingError):
    """
    wraps a failure returned by a handler when it has to be rendered.

    the original exception is kept under options["exception"].
    """
    __code__ = FaultCode.HANDLER_FAILURE
    __title__ = "command failed"


class InvalidRegistrationError(BindingError, TypeError):
    __code__ = FaultCode.INVALID_REGISTRATION
    __title__ = "invalid registration"


class BindingWarning(Warning):
    __code__ = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).__code__} | options)


class ShadowedOptionWarning(BindingWarning):
    __code__ = FaultCode.SHADOWED_OPTION


class PositionalGapWarning(BindingWarning):
    __code__ = FaultCode.POSITIONAL_GAP


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see BindingError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - without exit_on_failure the fault is raised; with it the fault is printed
      on options["console"] and SystemExit(1) is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "BindingError",
    "UnknownCommandError",
    "UnknownOptionError",
    "MissingOptionValueError",
    "PositionalCountError",
    "InsufficientArgsError",
    "ArgCountMismatchError",
    "MalformedValueError",
    "UnsupportedTypeError",
    "HandlerError",
    "InvalidRegistrationError",
    "BindingWarning",
    "ShadowedOptionWarning",
    "PositionalGapWarning",
    "trigger",
)
