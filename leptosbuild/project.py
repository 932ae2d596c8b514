"""Projects of a workspace and the overall configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from leptosbuild.cli import Opts
from leptosbuild.packages import BinPackage, LibPackage, Metadata, Package
from leptosbuild.projectconfig import (
    AssetsConfig,
    ConfigError,
    End2EndConfig,
    ProjectConfig,
    StyleConfig,
    parse_project_config,
)


def _leptos_metadata(metadata: Any) -> Any:
    if isinstance(metadata, Mapping):
        return metadata.get("leptos")
    return None


@dataclass(frozen=True)
class ProjectDefinition:
    """The name of a project and the packages it is built from."""

    name: str
    bin_package: str
    lib_package: str

    @classmethod
    def _from_section(cls, section: Any) -> ProjectDefinition:
        if not isinstance(section, Mapping):
            raise ConfigError(f"expected a table of leptos settings, got {section!r}")
        values = {}
        for key in ("name", "bin-package", "lib-package"):
            value = section.get(key)
            if not isinstance(value, str):
                raise ConfigError(f"missing or invalid field `{key}` in leptos workspace metadata")
            values[key.replace("-", "_")] = value
        return cls(**values)

    @classmethod
    def from_workspace(
        cls, data: Any, directory: Path, metadata: Metadata, environ: Mapping[str, str] | None = None
    ) -> list[tuple[ProjectDefinition, ProjectConfig]]:
        if not isinstance(data, list):
            return []
        return [
            (
                cls._from_section(section),
                parse_project_config(directory, section, metadata.target_directory, environ),
            )
            for section in data
        ]

    @classmethod
    def from_project(
        cls,
        package: Package,
        data: Any,
        directory: Path,
        metadata: Metadata,
        environ: Mapping[str, str] | None = None,
    ) -> tuple[ProjectDefinition, ProjectConfig]:
        conf = parse_project_config(directory, data, metadata.target_directory, environ)
        if package.cdylib_target() is None:
            raise ConfigError(
                "Cargo.toml has leptos metadata but is missing a cdylib library target. "
                f"{package.manifest_path}"
            )
        if not package.has_bin_target():
            raise ConfigError(
                f"Cargo.toml has leptos metadata but is missing a bin target. {package.manifest_path}"
            )
        return cls(package.name, package.name, package.name), conf

    @classmethod
    def parse(
        cls, metadata: Metadata, environ: Mapping[str, str] | None = None
    ) -> list[tuple[ProjectDefinition, ProjectConfig]]:
        """All project definitions: workspace sections first, then package sections."""
        found: list[tuple[ProjectDefinition, ProjectConfig]] = []
        workspace = _leptos_metadata(metadata.workspace_metadata)
        if workspace is not None:
            found += cls.from_workspace(workspace, Path(""), metadata, environ)
        for package in metadata.workspace_packages():
            data = _leptos_metadata(package.metadata)
            if data is None:
                continue
            try:
                directory = package.manifest_path.relative_to(metadata.workspace_root).parent
            except ValueError as err:
                raise ConfigError(
                    f"{package.manifest_path} is outside {metadata.workspace_root}"
                ) from err
            found.append(cls.from_project(package, data, directory, metadata, environ))
        return found


@dataclass
class Project:
    """A fully resolved project."""

    working_dir: Path
    name: str
    lib: LibPackage
    bin: BinPackage
    style: StyleConfig
    watch: bool
    release: bool
    precompress: bool
    hot_reload: bool
    site_root: Path
    site_pkg_dir: Path
    site_addr: str
    reload_port: int
    end2end: End2EndConfig | None = None
    assets: AssetsConfig | None = None
    js_dir: Path = field(default_factory=lambda: Path("src"))
    watch_additional_files: list[Path] = field(default_factory=list)

    @staticmethod
    def resolve_all(
        cli: Opts,
        cwd: Path | str,
        metadata: Metadata,
        watch: bool,
        environ: Mapping[str, str] | None = None,
    ) -> list[Project]:
        """Resolve every project; a project under the working dir is picked when it is the only one."""
        resolved: list[Project] = []
        for definition, config in ProjectDefinition.parse(metadata, environ):
            if not config.output_name:
                config.output_name = definition.name
            lib = LibPackage.resolve(cli, metadata, definition, config)
            resolved.append(
                Project(
                    working_dir=metadata.workspace_root,
                    name=definition.name,
                    lib=lib,
                    bin=BinPackage.resolve(cli, metadata, definition, config),
                    style=StyleConfig.resolve(config),
                    watch=watch,
                    release=cli.release,
                    precompress=cli.precompress,
                    hot_reload=cli.hot_reload,
                    site_root=config.site_root,
                    site_pkg_dir=config.site_pkg_dir,
                    site_addr=config.site_addr,
                    reload_port=config.reload_port,
                    end2end=End2EndConfig.resolve(config),
                    assets=AssetsConfig.resolve(config),
                    js_dir=config.js_dir if config.js_dir is not None else Path("src"),
                    watch_additional_files=list(config.watch_additional_files or []),
                )
            )
        cwd = Path(cwd)
        in_cwd = [
            p for p in resolved
            if p.bin.abs_dir.is_relative_to(cwd) or p.lib.abs_dir.is_relative_to(cwd)
        ]
        return in_cwd if len(in_cwd) == 1 else resolved

    def to_envs(self) -> list[tuple[str, str]]:
        """Environment variables for the commands run on this project."""
        envs = [
            ("LEPTOS_OUTPUT_NAME", self.lib.output_name),
            ("LEPTOS_SITE_ROOT", str(self.site_root)),
            ("LEPTOS_SITE_PKG_DIR", str(self.site_pkg_dir)),
            ("LEPTOS_SITE_ADDR", self.site_addr),
            ("LEPTOS_RELOAD_PORT", str(self.reload_port)),
            ("LEPTOS_LIB_DIR", str(self.lib.rel_dir)),
            ("LEPTOS_BIN_DIR", str(self.bin.rel_dir)),
        ]
        if self.watch:
            envs.append(("LEPTOS_WATCH", "ON"))
        return envs


def _names(projects: list[Project]) -> str:
    return ", ".join(p.name for p in projects)


@dataclass
class Config:
    """The projects selected for this run together with the command line options."""

    working_dir: Path
    projects: list[Project]
    cli: Opts
    watch: bool

    @classmethod
    def from_metadata(
        cls,
        cli: Opts,
        cwd: Path | str,
        metadata: Metadata,
        watch: bool,
        environ: Mapping[str, str] | None = None,
    ) -> Config:
        projects = Project.resolve_all(cli, cwd, metadata, watch, environ)
        if not projects:
            raise ConfigError(
                "Please define leptos projects in the workspace Cargo.toml sections "
                "[[workspace.metadata.leptos]]"
            )
        if cli.project is not None:
            chosen = next((p for p in projects if p.name == cli.project), None)
            if chosen is None:
                raise ConfigError(
                    f'The specified project "{cli.project}" not found. '
                    f"Available projects: {_names(projects)}"
                )
            projects = [chosen]
        return cls(working_dir=metadata.workspace_root, projects=projects, cli=cli, watch=watch)

    @classmethod
    def load(cls, cli: Opts, cwd: Path | str, manifest_path: Path | str, watch: bool) -> Config:
        """Read the workspace of the manifest with cargo metadata and resolve its projects."""
        return cls.from_metadata(cli, cwd, Metadata.load(manifest_path), watch)

    def current_project(self) -> Project:
        if len(self.projects) == 1:
            return self.projects[0]
        raise ConfigError(
            f"There are several projects available ({_names(self.projects)}). "
            "Please select one of them with the command line parameter --project"
        )