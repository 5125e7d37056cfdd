"""
Record binder: fill a record from a token sequence.

Two passes over the tokens, both driven by fields.extract():

1. positionals: for p in 0..last declared index, a declared position consumes
   exactly one token (InsufficientArgsError when none is left); undeclared
   positions are skipped without consuming anything.
2. options, left to right from the cursor:
   • "--name=value"   known long name: coerce and set; unknown: UnknownOptionError.
   • "--name"         flag: set True; option: take the next token as its value
                      (MissingOptionValueError when there is none); unknown:
                      UnknownOptionError.
   • "-x"             same as "--name", against the short names.
   • anything else    stops the scan; the caller keeps the trailing tokens.

bind() returns the record and how many tokens were consumed by both passes.
"""
import logging

from .faults import InsufficientArgsError, MissingOptionValueError, UnknownOptionError, MalformedValueError
from .fields import extract
from .kinds import coerce, describe
from .utils import ordinal

logger = logging.getLogger(__name__)


def _assign(values, spec, token, *, input):
    """
    coerce a token into a field; failures name the field and where it came from.
    """
    try:
        values[spec.name] = coerce(token, spec.kind if spec.kind is not None else spec.annotation)
    except MalformedValueError as exception:
        raise exception.__replace__(
            field=spec.name,
            input=input,
        ) from None


def _unknown(token, fieldmap):
    names = sorted(fieldmap.long) + sorted(fieldmap.short)
    return UnknownOptionError(
        "unknown option: %s" % token,
        input=token,
        hint="known options are %s" % ", ".join(names) if names else "this command takes no options",
    )


def bind(tokens, record_type, /):
    """
    Bind tokens onto a fresh instance of record_type.

    Parameters
    - tokens: sequence of raw string tokens (already stripped of the command path).
    - record_type: a record (dataclass) type.

    Returns
    - (record, consumed): the populated record and the number of leading tokens
      used by the positional and option passes.

    Raises
    - InsufficientArgsError, MissingOptionValueError, UnknownOptionError,
      MalformedValueError, UnsupportedTypeError.
    """
    fieldmap = extract(record_type)
    values = {spec.name: spec.zero for spec in fieldmap.fields if not spec.defaulted}
    cursor = 0

    for position in range(fieldmap.last + 1):
        try:
            spec = fieldmap.positional[position]
        except KeyError:
            continue
        if cursor >= len(tokens):
            raise InsufficientArgsError(
                "not enough positional arguments for %s: need position %d" % (record_type.__qualname__, position),
                position=position,
                field=spec.name,
                hint="add the %s positional argument (%s)" % (ordinal(cursor + 1), spec.display),
            )
        _assign(values, spec, tokens[cursor], input=ordinal(cursor + 1) + " position")
        cursor += 1

    while cursor < len(tokens):
        token = tokens[cursor]

        if token.startswith("--"):
            name, separator, value = token.partition("=")
            try:
                spec = fieldmap.long[name]
            except KeyError:
                raise _unknown(name if separator else token, fieldmap) from None
            if separator:
                _assign(values, spec, value, input=name)
                cursor += 1
                continue
        elif token.startswith("-") and len(token) >= 2:
            try:
                spec = fieldmap.short[token]
            except KeyError:
                raise _unknown(token, fieldmap) from None
        else:
            break

        if spec.flag:
            values[spec.name] = True
            cursor += 1
            continue
        if cursor + 1 >= len(tokens):
            raise MissingOptionValueError(
                "missing value for %s" % token,
                input=token,
                field=spec.name,
                hint="pass a %s after %s (for example: %s <value>)" % (describe(spec.kind or spec.annotation), token, token),
            )
        _assign(values, spec, tokens[cursor + 1], input=token)
        cursor += 2

    logger.debug("bound %s from %d of %d token(s)", record_type.__qualname__, cursor, len(tokens))
    return record_type(**values), cursor


__all__ = (
    "bind",
)
