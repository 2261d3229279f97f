"""Turn recipe fragments into debian build-control text.

Rendering is a pure string transformation. ``@NAME@`` placeholders are
replaced in a single pass, so make syntax such as ``$@`` or ``$(CURDIR)``
and substituted values are never re-scanned.
"""

import re

import toml

from .errors import MissingParameterError
from .selector import merge_recipes

PLACEHOLDER_RE = re.compile(r"@([A-Z][A-Z0-9_]*)@")

RULES_SHEBANG = "#!/usr/bin/make -f"


def _layout(exports, rules):
    lines = [f"export {name} = {value}" for name, value in exports]
    for target, body in rules:
        if lines:
            lines.append("")
        lines.append(f"{target}:")
        lines.extend(f"\t{line.lstrip()}" for line in body.splitlines() if line.strip())
    return "\n".join(lines) + "\n" if lines else ""


def _find_placeholders(text):
    return frozenset(PLACEHOLDER_RE.findall(text))


def _missing(names, params):
    return {name for name in names if params.get(name) is None}


def _substitute(text, params):
    return PLACEHOLDER_RE.sub(lambda match: str(params[match.group(1)]), text)


def placeholders(recipe):
    """Placeholder names a recipe declares."""
    return _find_placeholders(_layout(recipe.exports, recipe.rules))


def render_fragment(recipe, params):
    """Render a single recipe fragment with ``params``."""
    text = _layout(recipe.exports, recipe.rules)
    missing = _missing(_find_placeholders(text), params)
    if missing:
        raise MissingParameterError(missing, recipe.name)
    return _substitute(text, params)


def render_rules(recipes, params):
    """Merge a recipe selection into a complete ``debian/rules``.

    Only exports and targets that survive the merge need their placeholders
    resolved.
    """
    exports, rules = merge_recipes(recipes)

    missing = set()
    owners = []
    for name, text, recipe in exports + rules:
        unresolved = _missing(_find_placeholders(name + text), params)
        if unresolved:
            missing |= unresolved
            if recipe.name not in owners:
                owners.append(recipe.name)
    if missing:
        raise MissingParameterError(missing, ", ".join(owners))

    names = ", ".join(recipe.name for recipe in sorted(recipes, key=lambda r: r.rank))
    body = _layout(
        [(name, value) for name, value, _ in exports],
        [(target, text) for target, text, _ in rules],
    )
    header = f"{RULES_SHEBANG}\n# Generated by rustdeb from recipes: {names}\n\n"
    return header + _substitute(body, params)


def render_cargo_config(params):
    """Cargo config that replaces crates.io with the vendored sources.

    ``VENDOR_DIR`` is resolved by cargo relative to ``debian/``, the parent of
    ``CARGO_HOME``.
    """
    vendor_dir = params.get("VENDOR_DIR")
    if vendor_dir is None:
        raise MissingParameterError({"VENDOR_DIR"}, "cargo-config")
    config = {
        "source": {
            "crates-io": {"replace-with": "vendored-sources"},
            "vendored-sources": {"directory": str(vendor_dir)},
        },
        "net": {"offline": True},
    }
    return toml.dumps(config)
