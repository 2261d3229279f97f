"""Recipe fragments for debian/rules and the registry that orders them.

A recipe is keyed by the traits it handles. Its ``exports`` become
``export NAME = value`` lines and its ``rules`` become make targets. When two
selected recipes write the same export or target, the one registered later
wins, so registration order is the precedence list.

Placeholders are written ``@NAME@`` and are filled in by the renderer.
"""

from dataclasses import dataclass

from .cli_logger import logger
from .config import get_section
from .errors import InvalidRecipeError
from .traits import Trait

SEQUENCE_TARGET = "%"

ALL_TRAITS = frozenset(Trait)


@dataclass(frozen=True)
class Recipe:
    name: str
    traits: frozenset = frozenset()
    combines_with: frozenset = frozenset()
    exports: tuple = ()
    rules: tuple = ()
    description: str = ""
    rank: int = 0

    @property
    def targets(self):
        return tuple(target for target, _ in self.rules)

    @property
    def variables(self):
        return tuple(name for name, _ in self.exports)

    def tolerates(self, traits):
        """Whether this recipe can be applied to a project with ``traits``."""
        if not self.traits:
            return True
        return frozenset(traits) - self.traits <= self.combines_with


class RecipeRegistry:
    """Recipes in registration order; later registrations take precedence."""

    def __init__(self, recipes=()):
        self._recipes = {}
        self._next_rank = 0
        for recipe in recipes:
            self.register(recipe)

    def register(self, recipe):
        if recipe.name in self._recipes:
            logger.debug(f"Recipe '{recipe.name}' redefined; the new definition takes precedence.")
            del self._recipes[recipe.name]
        ranked = Recipe(
            name=recipe.name,
            traits=frozenset(recipe.traits),
            combines_with=frozenset(recipe.combines_with),
            exports=tuple(recipe.exports),
            rules=tuple(recipe.rules),
            description=recipe.description,
            rank=self._next_rank,
        )
        self._next_rank += 1
        self._recipes[ranked.name] = ranked
        return ranked

    def get(self, name):
        return self._recipes[name]

    def __contains__(self, name):
        return name in self._recipes

    def __iter__(self):
        return iter(sorted(self._recipes.values(), key=lambda r: r.rank))

    def __len__(self):
        return len(self._recipes)

    def copy(self):
        registry = RecipeRegistry()
        for recipe in self:
            registry.register(recipe)
        return registry


# -------------------- Built-in recipes --------------------

CARGO_BUILD = "cargo build --release --locked --target @DEB_HOST_RUST_TYPE@"
BINARY_INSTALL = (
    "install -D -m 0755 target/@DEB_HOST_RUST_TYPE@/release/@CRATE@ "
    "debian/@PACKAGE@/@INSTALL_DIR@/@CRATE@"
)

DEFAULT = Recipe(
    name="default",
    description="Single binary crate built with cargo.",
    combines_with=ALL_TRAITS,
    exports=(
        ("CARGO_HOME", "@CARGO_HOME@"),
        ("CARGO_NET_OFFLINE", "@CARGO_NET_OFFLINE@"),
        ("DEB_HOST_RUST_TYPE", "@DEB_HOST_RUST_TYPE@"),
        ("DEB_CARGO_CRATE", "@CRATE@_@VERSION@"),
    ),
    rules=(
        (SEQUENCE_TARGET, "dh $@ --buildsystem=cargo"),
        ("override_dh_auto_build", CARGO_BUILD),
        ("override_dh_auto_install", BINARY_INSTALL),
    ),
)

ALTERNATE_BUILD_SYSTEM = Recipe(
    name="alternate-build-system",
    description="Upstream drives cargo from meson, cmake, autotools or make.",
    traits=frozenset({Trait.USES_ALTERNATE_BUILD_SYSTEM}),
    combines_with=frozenset({
        Trait.PRODUCES_SHARED_LIBRARY,
        Trait.VENDORS_NATIVE_LIBRARY,
        Trait.BUNDLES_WEB_ASSETS,
    }),
    rules=(
        (SEQUENCE_TARGET, "dh $@ --buildsystem=@BUILD_SYSTEM@"),
        ("override_dh_auto_build", "dh_auto_build"),
        ("override_dh_auto_install", "dh_auto_install --destdir=debian/@PACKAGE@"),
    ),
)

VENDORED_NATIVE = Recipe(
    name="vendored-native",
    description="Link the system copies of native libraries the crates would bundle.",
    traits=frozenset({Trait.VENDORS_NATIVE_LIBRARY}),
    combines_with=ALL_TRAITS,
    exports=(
        ("OPENSSL_NO_VENDOR", "1"),
        ("LIBGIT2_NO_VENDOR", "1"),
        ("LIBSSH2_SYS_USE_PKG_CONFIG", "1"),
        ("LIBSQLITE3_SYS_USE_PKG_CONFIG", "1"),
        ("ZSTD_SYS_USE_PKG_CONFIG", "1"),
    ),
)

WEB_ASSETS = Recipe(
    name="web-assets",
    description="Build bundled web assets with npm before cargo runs.",
    traits=frozenset({Trait.BUNDLES_WEB_ASSETS}),
    combines_with=frozenset({
        Trait.VENDORS_NATIVE_LIBRARY,
        Trait.USES_ALTERNATE_BUILD_SYSTEM,
    }),
    exports=(
        ("NPM_CONFIG_CACHE", "$(CURDIR)/debian/npm_cache"),
    ),
    rules=(
        ("execute_before_dh_auto_build",
         "cd @WEB_DIR@ && npm ci --offline --ignore-scripts\n"
         "cd @WEB_DIR@ && npm run build"),
    ),
)

WORKSPACE_BINARY = Recipe(
    name="workspace-binary",
    description="Build and install one binary member of a cargo workspace.",
    traits=frozenset({Trait.IS_WORKSPACE}),
    combines_with=frozenset({
        Trait.PRODUCES_SHARED_LIBRARY,
        Trait.VENDORS_NATIVE_LIBRARY,
        Trait.HOSTS_LANGUAGE_EXTENSION,
    }),
    rules=(
        ("override_dh_auto_build", f"{CARGO_BUILD} --package @CRATE@"),
        ("override_dh_auto_install", BINARY_INSTALL),
    ),
)

SHARED_LIBRARY = Recipe(
    name="shared-library",
    description="Install the cdylib into the multiarch library directory.",
    traits=frozenset({Trait.PRODUCES_SHARED_LIBRARY}),
    combines_with=frozenset({
        Trait.IS_WORKSPACE,
        Trait.VENDORS_NATIVE_LIBRARY,
        Trait.HOSTS_LANGUAGE_EXTENSION,
        Trait.USES_ALTERNATE_BUILD_SYSTEM,
    }),
    rules=(
        ("override_dh_auto_install",
         "install -D -m 0644 target/@DEB_HOST_RUST_TYPE@/release/lib@LIB_NAME@.so "
         "debian/@PACKAGE@/usr/lib/@DEB_HOST_MULTIARCH@/lib@LIB_NAME@.so"),
    ),
)

EXTENSION_BINDING = Recipe(
    name="extension-binding",
    description="Python extension module built through pybuild.",
    traits=frozenset({Trait.HOSTS_LANGUAGE_EXTENSION}),
    combines_with=frozenset({
        Trait.PRODUCES_SHARED_LIBRARY,
        Trait.IS_WORKSPACE,
        Trait.VENDORS_NATIVE_LIBRARY,
    }),
    exports=(
        ("PYBUILD_NAME", "@PYBUILD_NAME@"),
        ("PYBUILD_DIR", "@PYBUILD_DIR@"),
    ),
    rules=(
        (SEQUENCE_TARGET, "dh $@ --with python3 --buildsystem=pybuild"),
        ("override_dh_auto_build", "dh_auto_build"),
        ("override_dh_auto_install", "dh_auto_install"),
    ),
)

# Registration order is the precedence order: extension bindings override
# plain library installs, which override workspace installs.
BUILTIN_RECIPES = (
    DEFAULT,
    ALTERNATE_BUILD_SYSTEM,
    VENDORED_NATIVE,
    WEB_ASSETS,
    WORKSPACE_BINARY,
    SHARED_LIBRARY,
    EXTENSION_BINDING,
)


def default_registry():
    return RecipeRegistry(BUILTIN_RECIPES)


# -------------------- Recipes from rustdeb.toml --------------------

def _parse_traits(recipe_name, key, names):
    if not isinstance(names, list):
        raise InvalidRecipeError(f"Recipe '{recipe_name}': '{key}' must be a list of trait names")
    try:
        return frozenset(Trait.parse(name) for name in names)
    except ValueError as e:
        raise InvalidRecipeError(f"Recipe '{recipe_name}': {e}") from None


def _parse_pairs(recipe_name, key, table):
    if not isinstance(table, dict):
        raise InvalidRecipeError(f"Recipe '{recipe_name}': '{key}' must be a table")
    pairs = []
    for name, value in table.items():
        if not isinstance(value, str):
            raise InvalidRecipeError(f"Recipe '{recipe_name}': {key}.{name} must be a string")
        pairs.append((name, value.strip("\n")))
    return tuple(pairs)


def recipe_from_config(name, table):
    """Build a :class:`Recipe` from a ``[recipes.<name>]`` table."""
    if not isinstance(table, dict):
        raise InvalidRecipeError(f"Recipe '{name}' must be a table")
    return Recipe(
        name=name,
        traits=_parse_traits(name, "traits", table.get("traits", [])),
        combines_with=_parse_traits(name, "combines_with", table.get("combines_with", [])),
        exports=_parse_pairs(name, "exports", table.get("exports", {})),
        rules=_parse_pairs(name, "rules", table.get("rules", {})),
        description=str(table.get("description", "")),
    )


def build_registry(conf=None):
    """Built-in recipes followed by those declared in the configuration."""
    registry = default_registry()
    for name, table in get_section(conf or {}, "recipes").items():
        recipe = registry.register(recipe_from_config(name, table))
        logger.info(f"Registered recipe '{recipe.name}' from configuration.")
    return registry
