"""Cargo workspace metadata and the bin and lib packages of a project."""

from __future__ import annotations

import json
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from leptosbuild.cli import Opts
from leptosbuild.profile import Profile
from leptosbuild.projectconfig import ConfigError, ProjectConfig, SiteFile, SourcedSiteFile


def _unbase(path: Path, base: Path) -> Path:
    try:
        return path.relative_to(base)
    except ValueError as err:
        raise ConfigError(f"Could not remove base {base} from {path}") from err


def _src_dir(rel_dir: Path) -> Path:
    return Path("src") if rel_dir == Path(".") else rel_dir / "src"


@dataclass(frozen=True)
class Target:
    """A build target of a package."""

    name: str
    kind: tuple[str, ...] = ()
    crate_types: tuple[str, ...] = ()

    @property
    def is_bin(self) -> bool:
        return "bin" in self.kind

    @property
    def is_cdylib(self) -> bool:
        return "cdylib" in self.kind or "cdylib" in self.crate_types


@dataclass
class Package:
    """A package as reported by cargo metadata."""

    name: str
    id: str
    manifest_path: Path
    targets: list[Target] = field(default_factory=list)
    metadata: Any = None
    path_dependencies: list[Path] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Package:
        targets = [
            Target(
                name=t["name"],
                kind=tuple(t.get("kind", ())),
                crate_types=tuple(t.get("crate_types", ())),
            )
            for t in data.get("targets", [])
        ]
        deps = [Path(d["path"]) for d in data.get("dependencies", []) if d.get("path")]
        return cls(
            name=data["name"],
            id=data["id"],
            manifest_path=Path(data["manifest_path"]),
            targets=targets,
            metadata=data.get("metadata"),
            path_dependencies=deps,
        )

    def has_bin_target(self) -> bool:
        return any(t.is_bin for t in self.targets)

    def cdylib_target(self) -> Target | None:
        return next((t for t in self.targets if t.is_cdylib), None)


@dataclass
class Metadata:
    """The parts of cargo metadata that describe a workspace."""

    workspace_root: Path
    target_directory: Path
    packages: list[Package] = field(default_factory=list)
    workspace_members: list[str] = field(default_factory=list)
    workspace_metadata: Any = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Metadata:
        try:
            return cls(
                workspace_root=Path(data["workspace_root"]),
                target_directory=Path(data["target_directory"]),
                packages=[Package.from_json(p) for p in data.get("packages", [])],
                workspace_members=list(data.get("workspace_members", [])),
                workspace_metadata=data.get("metadata"),
            )
        except (KeyError, TypeError) as err:
            raise ConfigError(f"invalid cargo metadata: {err}") from err

    @classmethod
    def load(cls, manifest_path: Path | str) -> Metadata:
        """Run cargo metadata for the manifest and read its output."""
        cmd = [
            "cargo", "metadata", "--format-version", "1", "--no-deps",
            "--manifest-path", str(manifest_path),
        ]
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as err:
            raise ConfigError(f"Could not run cargo metadata: {err}") from err
        if completed.returncode != 0:
            raise ConfigError(f"cargo metadata failed: {completed.stderr.strip()}")
        try:
            data = json.loads(completed.stdout)
        except json.JSONDecodeError as err:
            raise ConfigError(f"invalid cargo metadata output: {err}") from err
        return cls.from_json(data)

    def workspace_packages(self) -> list[Package]:
        members = set(self.workspace_members)
        return [p for p in self.packages if p.id in members]

    def rel_target_dir(self) -> Path:
        """The target directory relative to the workspace root when it lies within it."""
        try:
            return self.target_directory.relative_to(self.workspace_root)
        except ValueError:
            return self.target_directory

    def _src_path_dependencies(self, package_id: str) -> list[Path]:
        packages = self.workspace_packages()
        by_id = {p.id: p for p in packages}
        by_dir = {p.manifest_path.parent: p for p in packages}
        seen = {package_id}
        result: list[Path] = []

        def visit(pkg: Package) -> None:
            for dep_dir in pkg.path_dependencies:
                dep = by_dir.get(dep_dir)
                if dep is None or dep.id in seen:
                    continue
                seen.add(dep.id)
                result.append(_src_dir(_unbase(dep_dir, self.workspace_root)))
                visit(dep)

        if package_id in by_id:
            visit(by_id[package_id])
        return result


def _many_targets_found(pkg: str) -> ConfigError:
    return ConfigError(
        f'Several bin targets found for member "{pkg}", please specify which one to use with: '
        '[[workspace.metadata.leptos]] bin-target = "name"'
    )


def _target_not_found(target: str) -> ConfigError:
    return ConfigError(
        "Could not find the target specified: "
        f'[[workspace.metadata.leptos]] bin-target = "{target}"'
    )


@dataclass
class BinPackage:
    """The server package of a project."""

    name: str
    abs_dir: Path
    rel_dir: Path
    exe_file: Path
    target: str
    features: list[str]
    default_features: bool
    src_paths: list[Path]
    profile: Profile
    target_triple: str | None = None
    target_dir: str | None = None
    cargo_command: str | None = None
    cargo_args: list[str] | None = None

    @classmethod
    def resolve(cls, cli: Opts, metadata: Metadata, project: Any, config: ProjectConfig) -> BinPackage:
        features = list(cli.bin_features or config.bin_features)
        features += config.features
        features += cli.features

        name = project.bin_package
        package = next(
            (p for p in metadata.workspace_packages() if p.name == name and p.has_bin_target()),
            None,
        )
        if package is None:
            raise ConfigError(f'Could not find the project bin-package "{name}"')

        targets = [t for t in package.targets if t.is_bin]
        if config.bin_target:
            target = next((t for t in targets if t.name == config.bin_target), None)
            if target is None:
                raise _target_not_found(config.bin_target)
        elif len(targets) == 1:
            target = targets[0]
        elif not targets:
            raise ConfigError(f"No bin targets found for member {name}")
        else:
            raise _many_targets_found(name)

        abs_dir = package.manifest_path.parent
        rel_dir = _unbase(abs_dir, metadata.workspace_root)
        profile = Profile.from_flags(
            cli.release, config.bin_profile_release, config.bin_profile_dev
        )

        base = Path(config.bin_target_dir) if config.bin_target_dir else metadata.rel_target_dir()
        if config.bin_target_triple:
            base = base / config.bin_target_triple
        suffix = ".exe" if sys.platform == "win32" else ""
        exe_file = (base / str(profile) / name).with_suffix(suffix)

        src_paths = metadata._src_path_dependencies(package.id)
        src_paths.append(_src_dir(rel_dir))

        return cls(
            name=name,
            abs_dir=abs_dir,
            rel_dir=rel_dir,
            exe_file=exe_file,
            target=target.name,
            features=features,
            default_features=config.bin_default_features,
            src_paths=src_paths,
            profile=profile,
            target_triple=config.bin_target_triple,
            target_dir=config.bin_target_dir,
            cargo_command=config.bin_cargo_command,
            cargo_args=list(cli.bin_cargo_args) if cli.bin_cargo_args is not None else None,
        )


@dataclass
class LibPackage:
    """The front-end (WASM) package of a project."""

    name: str
    abs_dir: Path
    rel_dir: Path
    wasm_file: SourcedSiteFile
    js_file: SiteFile
    features: list[str]
    default_features: bool
    output_name: str
    src_paths: list[Path]
    front_target_path: Path
    profile: Profile
    cargo_args: list[str] | None = None

    @classmethod
    def resolve(cls, cli: Opts, metadata: Metadata, project: Any, config: ProjectConfig) -> LibPackage:
        name = project.lib_package
        output_name = config.output_name or name.replace("-", "_")

        package = next((p for p in metadata.workspace_packages() if p.name == name), None)
        if package is None:
            raise ConfigError(f'Could not find the project lib-package "{name}"')

        features = list(cli.lib_features or config.lib_features)
        features += config.features
        features += cli.features

        abs_dir = package.manifest_path.parent
        rel_dir = _unbase(abs_dir, metadata.workspace_root)
        profile = Profile.from_flags(
            cli.release, config.lib_profile_release, config.lib_profile_dev
        )

        wasm_source = (
            metadata.rel_target_dir() / "front" / "wasm32-unknown-unknown" / str(profile)
            / name.replace("-", "_")
        ).with_suffix(".wasm")
        wasm_site = (config.site_pkg_dir / output_name).with_suffix(".wasm")
        wasm_file = SourcedSiteFile(
            source=wasm_source, dest=config.site_root / wasm_site, site=wasm_site
        )

        js_site = (config.site_pkg_dir / output_name).with_suffix(".js")
        js_file = SiteFile(dest=config.site_root / js_site, site=js_site)

        src_paths = metadata._src_path_dependencies(package.id)
        src_paths.append(_src_dir(rel_dir))

        return cls(
            name=name,
            abs_dir=abs_dir,
            rel_dir=rel_dir,
            wasm_file=wasm_file,
            js_file=js_file,
            features=features,
            default_features=config.lib_default_features,
            output_name=output_name,
            src_paths=src_paths,
            front_target_path=metadata.target_directory / "front",
            profile=profile,
            cargo_args=list(cli.lib_cargo_args) if cli.lib_cargo_args is not None else None,
        )