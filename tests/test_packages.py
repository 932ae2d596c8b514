import json
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from leptosbuild.cli import Opts
from leptosbuild.packages import BinPackage, LibPackage, Metadata
from leptosbuild.project import ProjectDefinition
from leptosbuild.projectconfig import ConfigError, ProjectConfig


def _pkg(root, rel, name, targets, deps=()):
    base = root / rel if rel else root
    return {
        "name": name,
        "id": f"{name} 0.1.0",
        "manifest_path": str(base / "Cargo.toml"),
        "targets": [{"name": n, "kind": k, "crate_types": k} for n, k in targets],
        "dependencies": [{"name": d, "path": str(root / d)} for d in deps],
        "metadata": None,
    }


def _meta(root, packages, members=None):
    return {
        "packages": packages,
        "workspace_members": members if members is not None else [p["id"] for p in packages],
        "workspace_root": str(root),
        "target_directory": str(root / "target"),
        "metadata": None,
    }


@pytest.fixture
def root(tmp_path):
    return tmp_path / "ws"


@pytest.fixture
def single(root):
    pkg = _pkg(root, "", "my-app", [("my-app", ["cdylib", "rlib"]), ("my-app", ["bin"])])
    return Metadata.from_json(_meta(root, [pkg]))


def _def(bin_package="my-app", lib_package="my-app"):
    return ProjectDefinition(name="p", bin_package=bin_package, lib_package=lib_package)


def test_workspace_packages_only_members(root):
    a = _pkg(root, "a", "a", [("a", ["bin"])])
    b = _pkg(root, "b", "b", [("b", ["bin"])])
    metadata = Metadata.from_json(_meta(root, [a, b], members=[a["id"]]))
    assert [p.name for p in metadata.workspace_packages()] == ["a"]


def test_rel_target_dir(single):
    assert single.rel_target_dir() == Path("target")


def test_bin_resolve_basic(single, root):
    bin_pkg = BinPackage.resolve(Opts(), single, _def(), ProjectConfig())
    assert bin_pkg.name == "my-app"
    assert bin_pkg.target == "my-app"
    assert bin_pkg.rel_dir == Path(".")
    assert bin_pkg.abs_dir == root
    assert bin_pkg.exe_file.parent == Path("target") / "debug"
    assert bin_pkg.exe_file.stem == "my-app"
    assert str(bin_pkg.profile) == "debug"
    assert bin_pkg.src_paths == [Path("src")]
    assert bin_pkg.default_features is False


def test_bin_release_and_named_profile(single):
    release = BinPackage.resolve(Opts(release=True), single, _def(), ProjectConfig())
    assert release.exe_file.parent == Path("target") / "release"
    named = BinPackage.resolve(
        Opts(release=True), single, _def(), ProjectConfig(bin_profile_release="opt")
    )
    assert named.exe_file.parent == Path("target") / "opt"
    assert named.profile.cargo_args() == ["--profile=opt"]


def test_bin_target_dir_and_triple(single):
    conf = ProjectConfig(bin_target_dir="out", bin_target_triple="x86_64-unknown-linux-gnu")
    bin_pkg = BinPackage.resolve(Opts(), single, _def(), conf)
    assert bin_pkg.exe_file.parent == Path("out") / "x86_64-unknown-linux-gnu" / "debug"
    assert bin_pkg.target_dir == "out"
    assert bin_pkg.target_triple == "x86_64-unknown-linux-gnu"


def test_bin_features_order(single):
    conf = ProjectConfig(bin_features=["ssr"], features=["common"])
    cli = Opts(features=["extra"])
    assert BinPackage.resolve(cli, single, _def(), conf).features == ["ssr", "common", "extra"]
    cli = Opts(bin_features=["cli-ssr"])
    assert BinPackage.resolve(cli, single, _def(), conf).features == ["cli-ssr", "common"]


def test_bin_cargo_args_and_command(single):
    conf = ProjectConfig(bin_cargo_command="cross")
    bin_pkg = BinPackage.resolve(Opts(bin_cargo_args=["--locked"]), single, _def(), conf)
    assert bin_pkg.cargo_command == "cross"
    assert bin_pkg.cargo_args == ["--locked"]


def test_bin_several_targets(root):
    pkg = _pkg(root, "", "srv", [("one", ["bin"]), ("two", ["bin"])])
    metadata = Metadata.from_json(_meta(root, [pkg]))
    with pytest.raises(ConfigError, match="Several bin targets"):
        BinPackage.resolve(Opts(), metadata, _def("srv"), ProjectConfig())
    chosen = BinPackage.resolve(Opts(), metadata, _def("srv"), ProjectConfig(bin_target="two"))
    assert chosen.target == "two"
    with pytest.raises(ConfigError, match="Could not find the target specified"):
        BinPackage.resolve(Opts(), metadata, _def("srv"), ProjectConfig(bin_target="three"))


def test_bin_missing_package(single):
    with pytest.raises(ConfigError, match='bin-package "nope"'):
        BinPackage.resolve(Opts(), single, _def(bin_package="nope"), ProjectConfig())


def test_lib_resolve(single, root):
    conf = ProjectConfig(output_name="site", site_root=Path("target/site"))
    lib = LibPackage.resolve(Opts(), single, _def(), conf)
    assert lib.output_name == "site"
    assert lib.wasm_file.source == (
        Path("target") / "front" / "wasm32-unknown-unknown" / "debug" / "my_app.wasm"
    )
    assert lib.wasm_file.site == Path("pkg") / "site.wasm"
    assert lib.wasm_file.dest == Path("target/site") / "pkg" / "site.wasm"
    assert lib.js_file.site == Path("pkg") / "site.js"
    assert lib.js_file.dest == Path("target/site") / "pkg" / "site.js"
    assert lib.front_target_path == root / "target" / "front"


def test_lib_output_name_fallback(single):
    lib = LibPackage.resolve(Opts(), single, _def(), ProjectConfig())
    assert lib.output_name == "my_app"


def test_lib_features_and_missing(single):
    conf = ProjectConfig(lib_features=["hydrate"], features=["common"])
    lib = LibPackage.resolve(Opts(features=["x"]), single, _def(), conf)
    assert lib.features == ["hydrate", "common", "x"]
    with pytest.raises(ConfigError, match='lib-package "gone"'):
        LibPackage.resolve(Opts(), single, _def(lib_package="gone"), conf)


def test_src_path_dependencies(root):
    app = _pkg(root, "app", "app", [("app", ["lib"])])
    server = _pkg(root, "server", "server", [("server", ["bin"])], deps=["app"])
    metadata = Metadata.from_json(_meta(root, [app, server]))
    bin_pkg = BinPackage.resolve(Opts(), metadata, _def("server"), ProjectConfig())
    assert bin_pkg.src_paths == [Path("app") / "src", Path("server") / "src"]


def test_metadata_load(root, single):
    data = _meta(root, [_pkg(root, "", "my-app", [("my-app", ["bin"])])])
    done = subprocess.CompletedProcess([], 0, stdout=json.dumps(data), stderr="")
    with mock.patch("leptosbuild.packages.subprocess.run", return_value=done) as run:
        metadata = Metadata.load(root / "Cargo.toml")
    assert metadata.workspace_root == root
    assert [p.name for p in metadata.packages] == ["my-app"]
    assert "--manifest-path" in run.call_args.args[0]


def test_metadata_load_failure(root):
    failed = subprocess.CompletedProcess([], 101, stdout="", stderr="boom")
    with mock.patch("leptosbuild.packages.subprocess.run", return_value=failed):
        with pytest.raises(ConfigError, match="boom"):
            Metadata.load(root / "Cargo.toml")