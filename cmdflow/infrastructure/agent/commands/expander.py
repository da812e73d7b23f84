"""Template expansion for command prompts.

Command templates use a Handlebars-style syntax:

    {{args.file}}                      variable, dotted paths
    {{{args.code}}}                    same as {{...}} (nothing is escaped)
    {{#if git_diff}}...{{else if files}}...{{else}}...{{/if}}
    {{#unless args.quiet}}...{{/unless}}
    {{#each files}}{{@index}}: {{this}}{{/each}}
    {{! comment }}  {{!-- comment --}}

Templates are translated into Jinja2 source and rendered with a
non-strict undefined, so references to missing values render as the
empty string. Jinja2 block and comment delimiters are moved to
``{{% %}}`` and ``{{! !}}`` so literal ``{% %}`` or ``{# #}`` in
markdown stays plain text.
"""

import logging
import re
from functools import lru_cache
from typing import Any

from jinja2 import ChainableUndefined, Environment, Template, TemplateError
from jinja2.runtime import LoopContext

from cmdflow.infrastructure.agent.commands.context import CommandContext
from cmdflow.infrastructure.agent.errors import TemplateExpansionError

logger = logging.getLogger(__name__)

_COMMENT_PATTERN = re.compile(r"\{\{~?!--.*?--~?\}\}|\{\{~?![^}]*\}\}", re.DOTALL)
_TAG_PATTERN = re.compile(r"\{\{\{(~?)\s*(.*?)\s*(~?)\}\}\}|\{\{(~?)\s*(.*?)\s*(~?)\}\}", re.DOTALL)
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INDEX_PATTERN = re.compile(r"^\d+$")

_LOOP_VARIABLES = {
    "@index": "loop.index0",
    "@first": "loop.first",
    "@last": "loop.last",
}

# Variable holding the whole data tree, for top-level names that are
# not valid identifiers or that Jinja2 would not parse as a variable.
_ROOT_NAME = "_root"

# Names Jinja2 parses as operators or literals rather than variables.
_RESERVED_NAMES = frozenset(
    "and or not in is if else true false none True False None loop".split()
) | {_ROOT_NAME}


def _finalize(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _translate_path(expression: str) -> str:
    """Translate a dotted Handlebars path into a Jinja2 expression."""
    if expression in _LOOP_VARIABLES:
        return _LOOP_VARIABLES[expression]
    if expression == "this" or expression == ".":
        return "this"

    segments = expression.split(".")
    if any(not segment for segment in segments):
        raise TemplateExpansionError(f"Invalid template expression '{expression}'")

    head, rest = segments[0], segments[1:]
    if head == "this" or (_SEGMENT_PATTERN.match(head) and head not in _RESERVED_NAMES):
        parts = [head]
    else:
        parts = [_ROOT_NAME, f"[{head!r}]"]

    for segment in rest:
        if _INDEX_PATTERN.match(segment):
            parts.append(f"[{segment}]")
        else:
            parts.append(f"[{segment!r}]")
    return "".join(parts)


def _block(open_strip: str, body: str, close_strip: str) -> str:
    left = "-" if open_strip else ""
    right = "-" if close_strip else ""
    return f"{{{{%{left} {body} {right}%}}}}"


def _translate_tag(open_strip: str, content: str, close_strip: str) -> str:
    keyword, _, argument = content.partition(" ")
    argument = argument.strip()

    if keyword == "#if":
        return _block(open_strip, f"if {_translate_path(argument)}", close_strip)
    if keyword == "#unless":
        return _block(open_strip, f"if not {_translate_path(argument)}", close_strip)
    if keyword == "#each":
        return _block(open_strip, f"for this in {_translate_path(argument)}", close_strip)
    if keyword == "else":
        if not argument:
            return _block(open_strip, "else", close_strip)
        condition_keyword, _, condition = argument.partition(" ")
        if condition_keyword == "if":
            return _block(open_strip, f"elif {_translate_path(condition.strip())}", close_strip)
        if condition_keyword == "unless":
            return _block(
                open_strip, f"elif not {_translate_path(condition.strip())}", close_strip
            )
        raise TemplateExpansionError(f"Unsupported template tag '{{{{{content}}}}}'")
    if keyword in ("/if", "/unless"):
        return _block(open_strip, "endif", close_strip)
    if keyword == "/each":
        return _block(open_strip, "endfor", close_strip)
    if keyword.startswith(("#", "/", ">")) or argument:
        raise TemplateExpansionError(f"Unsupported template tag '{{{{{content}}}}}'")

    left = "-" if open_strip else ""
    right = "-" if close_strip else ""
    return f"{{{{{left} {_translate_path(content)} {right}}}}}"


def translate_template(template: str) -> str:
    """Translate Handlebars-style template text into Jinja2 source.

    Raises:
        TemplateExpansionError: If a tag is malformed or unsupported.
    """
    without_comments = _COMMENT_PATTERN.sub("", template)

    def replace(match: re.Match[str]) -> str:
        if match.group(2) is not None and match.group(0).startswith("{{{"):
            open_strip, content, close_strip = match.group(1), match.group(2), match.group(3)
        else:
            open_strip, content, close_strip = match.group(4), match.group(5), match.group(6)
        if not content:
            raise TemplateExpansionError("Empty template tag '{{}}'")
        return _translate_tag(open_strip, content, close_strip)

    return _TAG_PATTERN.sub(replace, without_comments)


class _DataEnvironment(Environment):
    """Environment that resolves template paths as data lookups only.

    A missing key never falls back to a Python attribute, so names like
    ``items`` or ``__class__`` render as undefined instead of exposing
    methods of the underlying dict, list or str.
    """

    def getitem(self, obj: Any, argument: Any) -> Any:
        try:
            return obj[argument]
        except (AttributeError, TypeError, LookupError):
            return self.undefined(obj=obj, name=argument)

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, LoopContext):
            return super().getattr(obj, attribute)
        return self.getitem(obj, attribute)


class TemplateExpander:
    """Renders command templates against a ``CommandContext``."""

    def __init__(self) -> None:
        self._environment = _DataEnvironment(
            block_start_string="{{%",
            block_end_string="%}}",
            comment_start_string="{{!",
            comment_end_string="!}}",
            undefined=ChainableUndefined,
            autoescape=False,
            finalize=_finalize,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._compile = lru_cache(maxsize=128)(self._compile_uncached)

    def _compile_uncached(self, template: str) -> Template:
        source = translate_template(template)
        try:
            return self._environment.from_string(source)
        except TemplateError as e:
            raise TemplateExpansionError(f"Template expansion failed: {e}", cause=e) from e

    def render(self, template: str, data: dict[str, Any]) -> str:
        """
        Render a template against a raw data tree.

        Args:
            template: Handlebars-style template text
            data: Values available to the template

        Returns:
            The rendered text

        Raises:
            TemplateExpansionError: If the template is malformed or fails to render
        """
        compiled = self._compile(template)
        try:
            return compiled.render({**data, _ROOT_NAME: data})
        except TemplateError as e:
            raise TemplateExpansionError(f"Template expansion failed: {e}", cause=e) from e
        except (TypeError, ValueError) as e:
            logger.debug("Template render raised %s", type(e).__name__, exc_info=True)
            raise TemplateExpansionError(f"Template expansion failed: {e}", cause=e) from e

    def expand(self, template: str, context: CommandContext) -> str:
        """Render a template against a command context."""
        return self.render(template, context.to_template_data())
