"""Map a trait set to the recipe fragments that package it."""

from .errors import UnsupportedCombinationError
from .recipes import SEQUENCE_TARGET, default_registry


def _names(traits):
    return ", ".join(sorted(str(t) for t in traits))


def select_recipes(traits, registry=None):
    """Return the recipes to apply for ``traits``, in precedence order.

    Every trait has to be handled by some recipe, and every recipe that is
    not subsumed by a more specific one has to tolerate the rest of the
    traits. Otherwise :class:`UnsupportedCombinationError` is raised naming
    the whole trait set.
    """
    traits = frozenset(traits)
    if registry is None:
        registry = default_registry()

    candidates = [recipe for recipe in registry if recipe.traits <= traits]

    covered = frozenset().union(*(recipe.traits for recipe in candidates))
    uncovered = traits - covered
    if uncovered:
        raise UnsupportedCombinationError(traits, f"no recipe handles {_names(uncovered)}")

    for recipe in candidates:
        if any(recipe.traits < other.traits for other in candidates):
            continue
        if not recipe.tolerates(traits):
            conflicting = traits - recipe.traits - recipe.combines_with
            raise UnsupportedCombinationError(
                traits,
                f"recipe '{recipe.name}' cannot be combined with {_names(conflicting)}",
            )

    return candidates


def merge_recipes(recipes):
    """Resolve overlapping exports and targets; the last recipe wins.

    Returns ``(exports, rules)``, each a list of ``(name, text, recipe)``
    in first-appearance order, with the ``%`` sequence target first.
    """
    exports = {}
    rules = {}
    for recipe in sorted(recipes, key=lambda r: r.rank):
        for name, value in recipe.exports:
            exports[name] = (name, value, recipe)
        for target, body in recipe.rules:
            rules[target] = (target, body, recipe)

    ordered_rules = list(rules.values())
    ordered_rules.sort(key=lambda entry: entry[0] != SEQUENCE_TARGET)
    return list(exports.values()), ordered_rules


def winning_targets(recipes):
    """Map every export and make target to the name of the recipe providing it."""
    exports, rules = merge_recipes(recipes)
    winners = {f"export {name}": recipe.name for name, _, recipe in exports}
    winners.update({target: recipe.name for target, _, recipe in rules})
    return winners
