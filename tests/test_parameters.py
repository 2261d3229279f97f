import unittest

from rustdeb.parameters import (
    cargo_home_in_debian,
    default_vendor_dir,
    debian_package_name,
    derive_parameters,
    multiarch_for,
    parse_assignments,
)
from rustdeb.traits import BuildSystem, Project


class TestParameters(unittest.TestCase):

    def setUp(self):
        self.project = Project(
            root="/src/keylime",
            name="keylime_agent",
            version="0.3.1",
            build_system=BuildSystem.CARGO,
            has_lockfile=True,
        )

    def test_defaults_from_project(self):
        params = derive_parameters(self.project)
        self.assertEqual(params["CRATE"], "keylime_agent")
        self.assertEqual(params["VERSION"], "0.3.1")
        self.assertEqual(params["PACKAGE"], "keylime-agent")
        self.assertEqual(params["LIB_NAME"], "keylime_agent")
        self.assertEqual(params["INSTALL_DIR"], "usr/bin")
        self.assertEqual(params["CARGO_HOME"], "$(CURDIR)/debian/cargo_home")
        self.assertEqual(params["CARGO_NET_OFFLINE"], "true")
        self.assertEqual(params["BUILD_SYSTEM"], "cargo")
        self.assertIsNone(params.get("DEB_HOST_RUST_TYPE"))
        self.assertIsNone(params["DEB_HOST_MULTIARCH"])

    def test_config_then_overrides(self):
        conf = {
            "package": {"name": "keylime", "version": "0.3.0"},
            "build": {"target": "aarch64-unknown-linux-gnu", "offline": False},
            "parameters": {"EXTRA_FLAG": 1},
        }
        params = derive_parameters(self.project, conf, {"VERSION": "0.3.2"})
        self.assertEqual(params["PACKAGE"], "keylime")
        self.assertEqual(params["VERSION"], "0.3.2")
        self.assertEqual(params["DEB_HOST_RUST_TYPE"], "aarch64-unknown-linux-gnu")
        self.assertEqual(params["DEB_HOST_MULTIARCH"], "aarch64-linux-gnu")
        self.assertEqual(params["CARGO_NET_OFFLINE"], "false")
        self.assertEqual(params["EXTRA_FLAG"], "1")

    def test_crate_override_recomputes_derived_names(self):
        project = Project(
            root="/src/cramjam", name="cramjam-python", version="2.8.0",
            build_system=BuildSystem.MATURIN, has_lockfile=False, lib_name="cramjam",
        )
        self.assertEqual(derive_parameters(project)["LIB_NAME"], "cramjam")
        self.assertEqual(derive_parameters(project)["PYBUILD_NAME"], "cramjam")
        self.assertEqual(derive_parameters(project)["BUILD_SYSTEM"], "pybuild")

        params = derive_parameters(project, overrides={"CRATE": "cramjam-cli"})
        self.assertEqual(params["LIB_NAME"], "cramjam_cli")
        self.assertEqual(params["PACKAGE"], "cramjam-cli")

    def test_offline_only_with_lockfile(self):
        self.assertEqual(derive_parameters(self.project)["CARGO_NET_OFFLINE"], "true")
        unlocked = Project(
            root="/src/hello", name="hello", version="1.0.0",
            build_system=BuildSystem.CARGO, has_lockfile=False,
        )
        self.assertEqual(derive_parameters(unlocked)["CARGO_NET_OFFLINE"], "false")
        conf = {"build": {"offline": True}}
        self.assertEqual(derive_parameters(unlocked, conf)["CARGO_NET_OFFLINE"], "true")

    def test_vendor_dir_follows_cargo_home(self):
        self.assertEqual(derive_parameters(self.project)["VENDOR_DIR"], "../vendor")
        conf = {"build": {"cargo_home": "$(CURDIR)/debian/build/cargo"}}
        self.assertEqual(derive_parameters(self.project, conf)["VENDOR_DIR"], "../../vendor")
        conf["build"]["vendor_dir"] = "/srv/vendor"
        self.assertEqual(derive_parameters(self.project, conf)["VENDOR_DIR"], "/srv/vendor")

    def test_cargo_home_in_debian(self):
        self.assertEqual(cargo_home_in_debian("$(CURDIR)/debian/cargo_home"), "cargo_home")
        self.assertEqual(cargo_home_in_debian("$(CURDIR)/debian/.cargo/"), ".cargo")
        self.assertIsNone(cargo_home_in_debian("$(CURDIR)/debian"))
        self.assertIsNone(cargo_home_in_debian("$(CURDIR)/debian/../cargo"))
        self.assertIsNone(cargo_home_in_debian("/var/tmp/cargo"))
        self.assertIsNone(cargo_home_in_debian(None))
        self.assertEqual(default_vendor_dir("/var/tmp/cargo"), "../vendor")

    def test_unknown_project_leaves_names_unset(self):
        project = Project(
            root="/src/empty", name=None, version=None,
            build_system=BuildSystem.UNKNOWN, has_lockfile=False,
        )
        params = derive_parameters(project)
        self.assertIsNone(params["CRATE"])
        self.assertIsNone(params.get("PACKAGE"))
        self.assertIsNone(params["BUILD_SYSTEM"])

    def test_multiarch_for(self):
        self.assertEqual(multiarch_for("x86_64-unknown-linux-gnu"), "x86_64-linux-gnu")
        self.assertEqual(multiarch_for("i686-unknown-linux-gnu"), "i386-linux-gnu")
        self.assertEqual(multiarch_for("armv7-unknown-linux-gnueabihf"), "arm-linux-gnueabihf")
        self.assertEqual(multiarch_for("sparc64-unknown-linux-gnu"), "sparc64-linux-gnu")
        self.assertIsNone(multiarch_for("wasm32-wasi"))
        self.assertIsNone(multiarch_for(None))

    def test_debian_package_name(self):
        self.assertEqual(debian_package_name("Keylime_Agent"), "keylime-agent")
        self.assertEqual(debian_package_name("rust@tool"), "rusttool")

    def test_parse_assignments(self):
        self.assertEqual(
            parse_assignments(["INSTALL_DIR=usr/sbin", "EMPTY="]),
            {"INSTALL_DIR": "usr/sbin", "EMPTY": ""},
        )
        with self.assertRaises(ValueError):
            parse_assignments(["lowercase=1"])
        with self.assertRaises(ValueError):
            parse_assignments(["NO_EQUALS"])


if __name__ == "__main__":
    unittest.main()
