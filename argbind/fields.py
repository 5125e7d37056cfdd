r"""
Argbind record fields: declaration and metadata extraction.

Overview
- Records are dataclasses whose fields are bound from tokens. Each field is
  either positional (by index) or a named option (long "--name" / short "-n").
- Declarations
  • positional(index, *names, help=...): positional field; explicit names make
    it addressable by name as well.
  • option(*names, help=...): named option; names override the defaults.
  • a plain dataclass field: named option called "--" + kebab-case(field name).
- record: decorator turning a class into a bindable dataclass. Fields without a
  default receive the zero value of their kind (None when nullable), and the
  metadata is extracted right away so mistakes surface at import time.
- extract(record_type): derive the positional/long/short tables used by the
  binder and the help renderer. The result is cached per type and immutable.

Classification (per field, in declaration order)
1. an explicit positional index registers positional[index]; explicit names
   are registered in the long/short tables too.
2. otherwise the field is an option: long = override or "--" + kebab-case(name),
   short = override (absent by default).
3. bool and nullable bool fields are flags: they never consume a value token.

Quick example:
    >>> @record
    ... class CreateText:
    ...     input: str = positional(0, help="input file")
    ...     output: str = option("--out", "-o", help="output file")
    ...     use_markdown: bool = option("--usemarkdown")
    ...
    >>> sorted(extract(CreateText).long)
    ['--out', '--usemarkdown']
"""
import dataclasses
import functools
import inspect
import logging
import re
import typing
import warnings
from dataclasses import dataclass
from types import MappingProxyType
from typing import NamedTuple

from . import kinds
from .faults import InvalidRegistrationError, PositionalGapWarning, ShadowedOptionWarning
from .kinds import Kind
from .utils import Unset, coalesce, kebabize, wordify

logger = logging.getLogger(__name__)

METADATA_KEY = "argbind"


@dataclass(frozen=True, slots=True)
class Tag:
    """
    declarative metadata attached to a dataclass field (under METADATA_KEY).
    """
    index: int | None = None
    long: str | None = None
    short: str | None = None
    help: str | None = None


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """
    Binding descriptor of one record field.

    Fields
    - name: attribute name on the record.
    - kind: primitive Kind, or None when the annotation is not supported.
    - annotation: the inner annotation (Optional stripped), kept for messages.
    - nullable: True for `X | None`; absent values stay None.
    - index: positional index, or None for options.
    - long / short: option names this field answers to (None when absent).
    - help: declared help text (None when absent).
    - defaulted: the dataclass field carries its own default (or default_factory).
    """
    name: str
    kind: Kind | None
    annotation: typing.Any
    nullable: bool
    index: int | None
    long: str | None
    short: str | None
    help: str | None
    defaulted: bool = False

    @property
    def flag(self):
        return self.kind is Kind.BOOL

    @property
    def zero(self):
        if self.nullable or self.kind is None:
            return None
        return self.kind.zero

    @property
    def display(self):
        """
        name shown in the "Arguments" block of the help.
        """
        return self.help or wordify(self.name)


class FieldMap(NamedTuple):
    positional: MappingProxyType
    long: MappingProxyType
    short: MappingProxyType
    fields: tuple

    @property
    def last(self):
        """
        highest positional index, or -1 when the record has no positional field.
        """
        return max(self.positional, default=-1)

    @property
    def options(self):
        """
        fields that are not positional, in declaration order.
        """
        return tuple(field for field in self.fields if field.index is None)


def _sanitize_help(caller, help):
    if not isinstance(help, str | Unset):
        raise InvalidRegistrationError(f"{caller}() 'help' must be a string")
    elif isinstance(help, str) and not (help := help.strip()):
        raise InvalidRegistrationError(f"{caller}() 'help' cannot be empty")
    return coalesce(help)


def _sanitize_names(caller, names):
    r"""
    Split option names into (long, short).

    - names must match r"--?[^\W\d_](-?[^\W_]+)*" (unicode letters allowed).
    - a name starting with "--" is long, a name starting with a single "-" is short.
    - at most one of each.
    """
    long = short = None
    for name in names:
        if not isinstance(name, str):
            raise InvalidRegistrationError(f"{caller}() names must be strings")
        elif not (name := name.strip()):
            raise InvalidRegistrationError(f"{caller}() names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise InvalidRegistrationError(f"{caller}() names must be valid shell-style option names")
        if name.startswith("--"):
            if long is not None:
                raise InvalidRegistrationError(f"{caller}() accepts a single long name")
            long = name
        else:
            if short is not None:
                raise InvalidRegistrationError(f"{caller}() accepts a single short name")
            short = name
    return long, short


def positional(index, /, *names, help=Unset, **field):
    """
    Declare a positional record field.

    Parameters
    - index: int >= 0, position among the record's positional tokens.
    - names: optional long ("--x") / short ("-x") names; when given, the field is
      also addressable as an option.
    - help: text shown in place of the field name in the help.
    - field: forwarded to dataclasses.field (default, default_factory, repr, ...).
    """
    if not isinstance(index, int) or isinstance(index, bool):
        raise InvalidRegistrationError("positional() index must be an integer")
    elif index < 0:
        raise InvalidRegistrationError("positional() index cannot be negative")
    long, short = _sanitize_names("positional", names)
    tag = Tag(index, long, short, _sanitize_help("positional", help))
    return dataclasses.field(metadata={METADATA_KEY: tag}, **field)


def option(*names, help=Unset, **field):
    """
    Declare a named record field.

    Parameters
    - names: optional long ("--x") / short ("-x") overrides.
    - help: description shown in the "Options" block.
    - field: forwarded to dataclasses.field.
    """
    long, short = _sanitize_names("option", names)
    tag = Tag(None, long, short, _sanitize_help("option", help))
    return dataclasses.field(metadata={METADATA_KEY: tag}, **field)


def is_record(annotation, /):
    """
    True when the annotation is a record type (a dataclass class, not an instance).
    """
    return isinstance(annotation, type) and dataclasses.is_dataclass(annotation)


def _hints(cls):
    try:
        return typing.get_type_hints(cls)
    except NameError as exception:
        raise InvalidRegistrationError(
            f"record {cls.__qualname__!r} has unresolvable annotations ({exception})"
        ) from None


def record(cls=Unset, /, **options):
    """
    Turn a class into a bindable record.

    Forms
    - @record
    - @record(frozen=True, ...)   (options are forwarded to dataclasses.dataclass)

    Fields declared without a default receive their zero value ("" / 0 / 0.0 /
    False, or None when nullable) so the record can be built with no arguments.
    """
    def wrapper(cls, /):
        if not isinstance(cls, type):
            raise InvalidRegistrationError("@record() must be applied to a class")
        if not dataclasses.is_dataclass(cls):
            hints = _hints(cls)
            for name in inspect.get_annotations(cls):
                if typing.get_origin(hints[name]) is typing.ClassVar:
                    continue
                annotation, nullable = kinds.unwrap(hints[name])
                kind = kinds.resolve(annotation)
                zero = None if nullable or kind is None else kind.zero
                value = cls.__dict__.get(name, dataclasses.MISSING)
                if value is dataclasses.MISSING:
                    setattr(cls, name, zero)
                elif (
                    isinstance(value, dataclasses.Field) and
                    value.default is dataclasses.MISSING and
                    value.default_factory is dataclasses.MISSING
                ):
                    value.default = zero
            cls = dataclass(cls, **options)
        extract(cls)
        return cls

    return wrapper(cls) if cls is not Unset else wrapper


@functools.cache
def extract(record_type, /):
    """
    Derive the binding tables of a record type.

    Returns
    - FieldMap(positional, long, short, fields) with read-only mappings from
      index / option name to FieldSpec, and the declaration-ordered fields.

    Raises
    - InvalidRegistrationError: not a record type, unresolvable annotations,
      or two fields claiming the same positional index.

    Warns
    - ShadowedOptionWarning: two fields answer to the same option name; the
      later declaration wins.
    - PositionalGapWarning: positional indices skip a number; the gap consumes
      no token when binding.
    """
    if not is_record(record_type):
        raise InvalidRegistrationError(f"{record_type!r} is not a record type")

    hints = _hints(record_type)
    positionals = {}
    longs = {}
    shorts = {}
    specs = []

    def claim(table, name, spec):
        if (previous := table.get(name)) is not None and previous.name != spec.name:
            warnings.warn(ShadowedOptionWarning(
                "option %r of record %r is declared by both %r and %r; %r wins" % (
                    name, record_type.__qualname__, previous.name, spec.name, spec.name
                ),
                record=record_type,
                input=name,
            ), stacklevel=4)
        table[name] = spec

    for field in dataclasses.fields(record_type):
        if not field.init:
            continue
        tag = field.metadata.get(METADATA_KEY, Tag())
        annotation, nullable = kinds.unwrap(hints.get(field.name, str))
        kind = kinds.resolve(annotation)

        if tag.index is not None:
            long, short = tag.long, tag.short
        else:
            long = tag.long or "--" + kebabize(field.name)
            short = tag.short

        defaulted = field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
        spec = FieldSpec(field.name, kind, annotation, nullable, tag.index, long, short, tag.help, defaulted)
        specs.append(spec)

        if spec.index is not None:
            if spec.index in positionals:
                raise InvalidRegistrationError("record %r declares position %d twice (%r and %r)" % (
                    record_type.__qualname__, spec.index, positionals[spec.index].name, spec.name
                ))
            positionals[spec.index] = spec
        if long:
            claim(longs, long, spec)
        if short:
            claim(shorts, short, spec)

    if gaps := sorted(set(range(max(positionals, default=-1) + 1)) - positionals.keys()):
        warnings.warn(PositionalGapWarning(
            "record %r leaves position(s) %s undeclared; they are skipped when binding" % (
                record_type.__qualname__, ", ".join(map(str, gaps))
            ),
            record=record_type,
            gaps=tuple(gaps),
        ), stacklevel=3)

    logger.debug("extracted %d field(s) from %s", len(specs), record_type.__qualname__)

    return FieldMap(
        MappingProxyType(dict(sorted(positionals.items()))),
        MappingProxyType(longs),
        MappingProxyType(shorts),
        tuple(specs),
    )


__all__ = (
    "Tag",
    "FieldSpec",
    "FieldMap",
    "positional",
    "option",
    "record",
    "is_record",
    "extract",
)
