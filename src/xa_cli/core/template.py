"""
Prompt template rendering.
"""

from __future__ import annotations

import re
from typing import Mapping

from xa_cli.core.exceptions import MissingPlaceholderError

PLACEHOLDER = "{input}"

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def render(template: str, input: str, args: Mapping[str, str] | None = None) -> str:
    """Fill a template with the caller's input and named arguments.

    Substitution is a single pass over the template: text coming from
    ``input`` or ``args`` is never substituted again. Placeholders that are
    neither ``{input}`` nor a key of ``args`` are left as they are.

    Args:
        template: Template containing at least one ``{input}``
        input: Text inserted verbatim for every ``{input}``
        args: Values for other named placeholders

    Returns:
        The rendered prompt.

    Raises:
        MissingPlaceholderError: If the template has no ``{input}``.
    """
    if PLACEHOLDER not in template:
        raise MissingPlaceholderError(
            f"Template has no {PLACEHOLDER} placeholder: {template!r}"
        )

    values = dict(args or {})
    values["input"] = input

    def _sub(m: re.Match) -> str:
        return values.get(m.group(1), m.group(0))

    return _PLACEHOLDER_RE.sub(_sub, template)
