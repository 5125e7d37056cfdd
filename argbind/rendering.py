"""
Help rendering.

The help is a pure view over the same metadata the binder uses (handler
parameters and record FieldMaps), printed through a rich Console bound to the
App's normal output sink.

Shapes
- global help: usage, every registered command (aligned, with help text), and
  the built-in help option.
- primitive handler: usage, one "[i] name <kind>" line per parameter, options.
- record handler (or a handler without parameters): usage, the positional
  "Arguments" block, the subcommand list when rendering the root handler, and
  an "Options" block with every named field.

Palette keys (used only when colorful=True)
- usage-label, program-name, group-label, children, children-description,
  option-name, flag-name, metavar, argument-description
"""
import logging
from collections import defaultdict

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .fields import extract
from .kinds import label

logger = logging.getLogger(__name__)

HELP_OPTION = ("-h|--help", "Show this help")

_styles = {
    "usage-label": "bold #00E6FF",  # CYAN → signature info color
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "group-label": "bold #FFFFFF",  # Pure white headers
    "children": "bold #36C5F0",  # Sky-blue subcommands
    "children-description": "#9CA3AF",
    "option-name": "bold #00E6FF",  # CYAN for options
    "flag-name": "bold #22C55E",  # GREEN for flags
    "metavar": "bold #FFD600",  # AMBER for parameters
    "argument-description": "#9CA3AF",  # Muted gray
    "panel-title": "bold #FF4D94",
}


class _Writer:
    """
    line accumulator that applies the palette only when colorful.
    """

    def __init__(self, colorful):
        self.colorful = colorful
        self.styles = defaultdict(str, _styles)
        self.lines = []

    def styler(self, style):
        return self.styles[style] if self.colorful else ""

    def text(self, fragment, style=""):
        return Text(str(fragment), self.styler(style) if style else "")

    def line(self, *fragments):
        line = Text.assemble(*(
            fragment if isinstance(fragment, Text) else Text(fragment) for fragment in fragments
        ))
        line.rstrip()
        self.lines.append(line)

    def blank(self):
        self.lines.append(Text(""))

    def usage(self, name, *rest):
        self.line(self.text("Usage", "usage-label"), ": ", *((self.text(name, "program-name"), " ") if name else ()), *rest)

    def group(self, label):
        self.line(self.text(label, "group-label"), ":")

    def options(self):
        self.group("Options")
        self.line("  ", self.text(HELP_OPTION[0], "flag-name"), " " * (24 - len(HELP_OPTION[0])), HELP_OPTION[1])


def _emit(console, writer, title, fancy):
    if fancy:
        console.print(Panel(
            Group(*writer.lines),
            title=Text.assemble("[", " ", f"{title} HELP".upper(), " ", "]", style=writer.styler("panel-title")),
            title_align="left",
        ))
        return
    for line in writer.lines:
        console.print(line)


def render_global(console, registry, /, *, colorful=False, fancy=False):
    """
    Print the help listing every registered command.
    """
    writer = _Writer(colorful)
    writer.usage("", "[options...]")
    writer.blank()
    writer.group("Commands")
    width = max((len(handler.name) for handler in registry), default=0)
    for handler in registry:
        if handler.help:
            writer.line(
                "  ",
                writer.text(handler.name.ljust(width), "children"),
                "  ",
                writer.text(handler.help, "children-description"),
            )
        else:
            writer.line("  ", writer.text(handler.name, "children"))
    writer.blank()
    writer.options()
    logger.debug("rendering global help for %d command(s)", len(registry))
    _emit(console, writer, "commands", fancy)


def render_command(console, handler, registry, /, *, prog="command", colorful=False, fancy=False):
    """
    Print the help of one handler (the root handler when handler.path is empty).
    """
    writer = _Writer(colorful)
    name = handler.name or prog

    if handler.help:
        writer.line(writer.text(handler.help, "argument-description"))
        writer.blank()

    if handler.params and not handler.records:
        writer.usage(name, "<args...>")
        writer.blank()
        writer.group("Arguments")
        for index, param in enumerate(handler.params):
            writer.line("  [%d] " % index, param.name, " ", writer.text(param.label, "metavar"))
        writer.blank()
        writer.options()
        logger.debug("rendering help for %r", name)
        return _emit(console, writer, name, fancy)

    fieldmaps = [extract(param.record) for param in handler.params if param.record is not None]

    positionals = {}
    for fieldmap in fieldmaps:
        for index, spec in fieldmap.positional.items():
            positionals[index] = spec.display
    last = max(positionals, default=-1)

    writer.usage(name, "<args...> [options...]" if last >= 0 else "[options...]")
    writer.blank()

    if last >= 0:
        writer.group("Arguments")
        for index in range(last + 1):
            writer.line("  [%d] " % index, positionals.get(index, "arg%d" % index))
        writer.blank()

    if not handler.path:
        writer.group("Commands")
        for child in registry:
            writer.line("  ", writer.text(child.name, "children"), " (args: %d)" % len(child.params))
        writer.blank()

    writer.options()
    for fieldmap in fieldmaps:
        for spec in fieldmap.options:
            names = "|".join(name for name in (spec.short, spec.long) if name)
            style = "flag-name" if spec.flag else "option-name"
            writer.line(
                "  ",
                writer.text(names, style),
                *(() if spec.flag else (" ", writer.text(label(spec.kind), "metavar"))),
                "    ",
                writer.text(spec.help or "", "argument-description"),
            )

    logger.debug("rendering help for %r", name)
    _emit(console, writer, name, fancy)


__all__ = (
    "render_global",
    "render_command",
)
