import unittest

import toml

from rustdeb.errors import MissingParameterError
from rustdeb.parameters import derive_parameters
from rustdeb.recipes import DEFAULT, EXTENSION_BINDING, SHARED_LIBRARY, WORKSPACE_BINARY, default_registry
from rustdeb.renderer import placeholders, render_cargo_config, render_fragment, render_rules
from rustdeb.selector import select_recipes
from rustdeb.traits import BuildSystem, Project, Trait

HOST = "x86_64-unknown-linux-gnu"


class TestRenderer(unittest.TestCase):

    def setUp(self):
        self.params = {
            "CRATE": "keylime_agent",
            "VERSION": "0.3.1",
            "PACKAGE": "keylime-agent",
            "DEB_HOST_RUST_TYPE": HOST,
            "INSTALL_DIR": "usr/bin",
            "CARGO_HOME": "$(CURDIR)/debian/cargo_home",
            "CARGO_NET_OFFLINE": "true",
            "LIB_NAME": "keylime_agent",
            "DEB_HOST_MULTIARCH": "x86_64-linux-gnu",
            "PYBUILD_NAME": "keylime_agent",
            "PYBUILD_DIR": ".",
        }

    def test_workspace_fragment_installs_binary(self):
        recipes = select_recipes({Trait.IS_WORKSPACE})
        workspace = [r for r in recipes if r.name == "workspace-binary"][0]
        text = render_fragment(workspace, self.params)
        self.assertIn("debian/keylime-agent/usr/bin/keylime_agent", text)
        self.assertIn("--package keylime_agent", text)
        self.assertIn("override_dh_auto_install:\n\tinstall -D -m 0755", text)

    def test_shared_library_install_uses_multiarch_dir(self):
        project = Project(
            root="/src/cramjam", name="cramjam", version="2.8.0",
            build_system=BuildSystem.CARGO, has_lockfile=True,
            traits=frozenset({Trait.PRODUCES_SHARED_LIBRARY}),
        )
        params = derive_parameters(project, overrides={"DEB_HOST_RUST_TYPE": HOST})
        text = render_fragment(SHARED_LIBRARY, params)
        self.assertIn("usr/lib/x86_64-linux-gnu/libcramjam.so", text)
        self.assertIn(f"target/{HOST}/release/libcramjam.so", text)

    def test_missing_host_rust_type_is_named(self):
        del self.params["DEB_HOST_RUST_TYPE"]
        with self.assertRaises(MissingParameterError) as cm:
            render_fragment(DEFAULT, self.params)
        self.assertEqual(cm.exception.placeholder, "DEB_HOST_RUST_TYPE")
        self.assertEqual(cm.exception.placeholders, ("DEB_HOST_RUST_TYPE",))
        self.assertIn("DEB_HOST_RUST_TYPE", str(cm.exception))
        self.assertIn("default", str(cm.exception))

    def test_none_counts_as_missing(self):
        self.params["PACKAGE"] = None
        with self.assertRaises(MissingParameterError) as cm:
            render_fragment(WORKSPACE_BINARY, self.params)
        self.assertEqual(cm.exception.placeholder, "PACKAGE")

    def test_declared_placeholders(self):
        self.assertEqual(
            placeholders(SHARED_LIBRARY),
            frozenset({"DEB_HOST_RUST_TYPE", "LIB_NAME", "PACKAGE", "DEB_HOST_MULTIARCH"}),
        )
        self.assertIn("DEB_HOST_RUST_TYPE", placeholders(DEFAULT))

    def test_make_syntax_is_left_alone(self):
        text = render_fragment(DEFAULT, self.params)
        self.assertIn("%:\n\tdh $@ --buildsystem=cargo", text)
        self.assertIn("export CARGO_HOME = $(CURDIR)/debian/cargo_home", text)
        self.assertIn("export DEB_CARGO_CRATE = keylime_agent_0.3.1", text)

    def test_substituted_values_are_not_rescanned(self):
        self.params["CRATE"] = "@VERSION@"
        text = render_fragment(WORKSPACE_BINARY, self.params)
        self.assertIn("release/@VERSION@", text)

    def test_distinct_parameters_give_distinct_output(self):
        other = dict(self.params, CRATE="tpm2_agent")
        self.assertNotEqual(
            render_fragment(WORKSPACE_BINARY, self.params),
            render_fragment(WORKSPACE_BINARY, other),
        )
        # Values the fragment does not use cannot change it.
        unused = dict(self.params, VERSION="9.9.9")
        self.assertEqual(
            render_fragment(WORKSPACE_BINARY, self.params),
            render_fragment(WORKSPACE_BINARY, unused),
        )

    def test_render_rules_merges_selection(self):
        recipes = select_recipes({Trait.PRODUCES_SHARED_LIBRARY, Trait.HOSTS_LANGUAGE_EXTENSION})
        text = render_rules(recipes, self.params)
        self.assertTrue(text.startswith("#!/usr/bin/make -f\n"))
        self.assertEqual(text.count("override_dh_auto_install:"), 1)
        self.assertIn("override_dh_auto_install:\n\tdh_auto_install\n", text)
        self.assertIn("dh $@ --with python3 --buildsystem=pybuild", text)
        self.assertNotIn("--buildsystem=cargo", text)
        self.assertIn("export PYBUILD_NAME = keylime_agent", text)
        self.assertLess(text.index("export CARGO_HOME"), text.index("%:"))
        self.assertLess(text.index("%:"), text.index("override_dh_auto_build:"))

    def test_render_rules_only_needs_surviving_placeholders(self):
        recipes = select_recipes({Trait.PRODUCES_SHARED_LIBRARY})
        del self.params["INSTALL_DIR"]
        text = render_rules(recipes, self.params)
        self.assertIn("libkeylime_agent.so", text)

    def test_render_rules_reports_owning_recipe(self):
        recipes = select_recipes({Trait.HOSTS_LANGUAGE_EXTENSION})
        del self.params["PYBUILD_NAME"]
        with self.assertRaises(MissingParameterError) as cm:
            render_rules(recipes, self.params)
        self.assertEqual(cm.exception.placeholder, "PYBUILD_NAME")
        self.assertEqual(cm.exception.recipe_name, EXTENSION_BINDING.name)

    def test_multiline_rule_bodies_are_tab_indented(self):
        registry = default_registry()
        recipes = select_recipes({Trait.BUNDLES_WEB_ASSETS}, registry)
        text = render_rules(recipes, dict(self.params, WEB_DIR="web"))
        self.assertIn(
            "execute_before_dh_auto_build:\n"
            "\tcd web && npm ci --offline --ignore-scripts\n"
            "\tcd web && npm run build\n",
            text,
        )

    def test_cargo_config_points_at_vendor_dir(self):
        config = toml.loads(render_cargo_config({"VENDOR_DIR": "../vendor"}))
        self.assertEqual(config["source"]["crates-io"]["replace-with"], "vendored-sources")
        self.assertEqual(config["source"]["vendored-sources"]["directory"], "../vendor")
        self.assertTrue(config["net"]["offline"])

    def test_cargo_config_requires_vendor_dir(self):
        with self.assertRaises(MissingParameterError) as cm:
            render_cargo_config({})
        self.assertEqual(cm.exception.placeholder, "VENDOR_DIR")


if __name__ == "__main__":
    unittest.main()
