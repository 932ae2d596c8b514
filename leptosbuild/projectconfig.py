"""Per-project configuration read from the leptos metadata of a Cargo manifest."""

from __future__ import annotations

import ipaddress
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

log = logging.getLogger(__name__)

CARGO_TARGET_DIR_MARKER = "CARGO_TARGET_DIR"
CARGO_BUILD_TARGET_DIR_MARKER = "CARGO_BUILD_TARGET_DIR"

DEFAULT_SITE_ADDR = "127.0.0.1:3000"
DEFAULT_RELOAD_PORT = 3001
DEFAULT_BROWSERQUERY = "defaults"

# Read elsewhere from the environment; listed so they are not reported as unused.
_IGNORED_ENV_KEYS = frozenset(
    {
        "LEPTOS_TAILWIND_VERSION",
        "LEPTOS_SASS_VERSION",
        "LEPTOS_CARGO_GENERATE_VERSION",
        "LEPTOS_WASM_OPT_VERSION",
    }
)


class ConfigError(Exception):
    """Raised for an invalid or inconsistent project configuration."""


@dataclass(frozen=True)
class SiteFile:
    """A file in the generated site: where it is written and its path within the site."""

    dest: Path
    site: Path

    def __str__(self) -> str:
        return str(self.site)


@dataclass(frozen=True)
class SourcedSiteFile:
    """A site file produced from a source file."""

    source: Path
    dest: Path
    site: Path

    def __str__(self) -> str:
        return str(self.site)


def _with_extension(path: Path, ext: str) -> Path:
    return path.with_suffix(f".{ext}" if ext else "")


def _parse_port(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not digits.isdigit() or not digits.isascii():
        raise ConfigError(f"invalid port number: {text!r}")
    port = int(digits)
    if port > 0xFFFF:
        raise ConfigError(f"port number out of range: {text!r}")
    return port


def _parse_socket_addr(text: str) -> str:
    """Validate an ip:port socket address and return it in canonical form."""
    if not isinstance(text, str):
        raise ConfigError(f"invalid socket address: {text!r}")
    try:
        if text.startswith("["):
            host, sep, port = text[1:].partition("]:")
            if not sep:
                raise ValueError(text)
            ip = ipaddress.IPv6Address(host)
            return f"[{ip}]:{_parse_port(port)}"
        host, sep, port = text.rpartition(":")
        if not sep:
            raise ValueError(text)
        ip4 = ipaddress.IPv4Address(host)
        return f"{ip4}:{_parse_port(port)}"
    except (ValueError, ConfigError) as err:
        raise ConfigError(f"invalid socket address: {text!r}") from err


def _str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{key}: expected a string, got {value!r}")
    return value


def _path(key: str, value: Any) -> Path:
    return Path(_str(key, value))


def _bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key}: expected a boolean, got {value!r}")
    return value


def _port(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFF:
        raise ConfigError(f"{key}: expected a port number, got {value!r}")
    return value


def _addr(key: str, value: Any) -> str:
    try:
        return _parse_socket_addr(value)
    except ConfigError as err:
        raise ConfigError(f"{key}: {err}") from err


def _str_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ConfigError(f"{key}: expected a list of strings, got {value!r}")
    return [_str(key, item) for item in value]


def _path_list(key: str, value: Any) -> list[Path]:
    return [Path(item) for item in _str_list(key, value)]


_Converter = Callable[[str, Any], Any]

# attribute name -> (converter, whether the value may be null)
_METADATA_FIELDS: dict[str, tuple[_Converter, bool]] = {
    "output_name": (_str, False),
    "site_addr": (_addr, False),
    "site_root": (_path, False),
    "site_pkg_dir": (_path, False),
    "style_file": (_path, True),
    "tailwind_input_file": (_path, True),
    "tailwind_config_file": (_path, True),
    "assets_dir": (_path, True),
    "js_dir": (_path, True),
    "watch_additional_files": (_path_list, True),
    "reload_port": (_port, False),
    "end2end_cmd": (_str, True),
    "end2end_dir": (_path, True),
    "browserquery": (_str, False),
    "bin_target": (_str, False),
    "bin_target_triple": (_str, True),
    "bin_target_dir": (_str, True),
    "bin_cargo_command": (_str, True),
    "bin_cargo_args": (_str, True),
    "features": (_str_list, False),
    "lib_features": (_str_list, False),
    "lib_default_features": (_bool, False),
    "lib_cargo_args": (_str, True),
    "bin_features": (_str_list, False),
    "bin_default_features": (_bool, False),
    "separate_front_target_dir": (_bool, True),
    "lib_profile_dev": (_str, True),
    "lib_profile_release": (_str, True),
    "bin_profile_dev": (_str, True),
    "bin_profile_release": (_str, True),
}


@dataclass
class ProjectConfig:
    """The settings of one leptos project section."""

    output_name: str = ""
    site_addr: str = DEFAULT_SITE_ADDR
    site_root: Path = field(default_factory=lambda: Path(CARGO_TARGET_DIR_MARKER) / "site")
    site_pkg_dir: Path = field(default_factory=lambda: Path("pkg"))
    style_file: Path | None = None
    tailwind_input_file: Path | None = None
    tailwind_config_file: Path | None = None
    assets_dir: Path | None = None
    js_dir: Path | None = None
    watch_additional_files: list[Path] | None = None
    reload_port: int = DEFAULT_RELOAD_PORT
    end2end_cmd: str | None = None
    end2end_dir: Path | None = None
    browserquery: str = DEFAULT_BROWSERQUERY
    bin_target: str = ""
    bin_target_triple: str | None = None
    bin_target_dir: str | None = None
    bin_cargo_command: str | None = None
    bin_cargo_args: str | None = None
    features: list[str] = field(default_factory=list)
    lib_features: list[str] = field(default_factory=list)
    lib_default_features: bool = False
    lib_cargo_args: str | None = None
    bin_features: list[str] = field(default_factory=list)
    bin_default_features: bool = False
    config_dir: Path = field(default_factory=lambda: Path(""))
    tmp_dir: Path = field(default_factory=lambda: Path(""))
    separate_front_target_dir: bool | None = None
    lib_profile_dev: str | None = None
    lib_profile_release: str | None = None
    bin_profile_dev: str | None = None
    bin_profile_release: str | None = None

    @property
    def site_port(self) -> int:
        """The port part of the site address."""
        return int(self.site_addr.rpartition(":")[2])

    @classmethod
    def from_metadata(cls, data: Mapping[str, Any]) -> ProjectConfig:
        """Read a metadata section with kebab-case keys; unknown keys are ignored."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"expected a table of leptos settings, got {data!r}")
        values: dict[str, Any] = {}
        for attr, (convert, optional) in _METADATA_FIELDS.items():
            key = attr.replace("_", "-")
            if key not in data:
                continue
            raw = data[key]
            if raw is None and optional:
                values[attr] = None
            elif raw is None:
                raise ConfigError(f"{key}: value cannot be null")
            else:
                values[attr] = convert(key, raw)
        return cls(**values)


def load_dotenvs(directory: Path | str) -> list[tuple[str, str]] | None:
    """Read the nearest .env file in the directory or one of its ancestors."""
    current = Path(directory)
    while True:
        candidate = current / ".env"
        if candidate.is_file():
            return [
                (key, value)
                for key, value in dotenv_values(candidate).items()
                if value is not None
            ]
        parent = current.parent
        if parent == current:
            return None
        current = parent


_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "LEPTOS_OUTPUT_NAME": ("output_name", str),
    "LEPTOS_SITE_ROOT": ("site_root", Path),
    "LEPTOS_SITE_PKG_DIR": ("site_pkg_dir", Path),
    "LEPTOS_STYLE_FILE": ("style_file", Path),
    "LEPTOS_ASSETS_DIR": ("assets_dir", Path),
    "LEPTOS_SITE_ADDR": ("site_addr", _parse_socket_addr),
    "LEPTOS_RELOAD_PORT": ("reload_port", _parse_port),
    "LEPTOS_END2END_CMD": ("end2end_cmd", str),
    "LEPTOS_END2END_DIR": ("end2end_dir", Path),
    "LEPTOS_BROWSERQUERY": ("browserquery", str),
    "LEPTOS_BIN_TARGET_TRIPLE": ("bin_target_triple", str),
    "LEPTOS_BIN_TARGET_DIR": ("bin_target_dir", str),
    "LEPTOS_BIN_CARGO_COMMAND": ("bin_cargo_command", str),
}


def _overlay(conf: ProjectConfig, envs: Iterable[tuple[str, str]]) -> None:
    for key, value in envs:
        if key in _ENV_FIELDS:
            attr, convert = _ENV_FIELDS[key]
            setattr(conf, attr, convert(value))
        elif key.startswith("LEPTOS_") and key not in _IGNORED_ENV_KEYS:
            log.warning("Env %s is not used by cargo-leptos", key)


def overlay_env(
    conf: ProjectConfig,
    dotenvs: Iterable[tuple[str, str]] | None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Apply LEPTOS_* settings from .env values, then from the environment."""
    if dotenvs is not None:
        _overlay(conf, dotenvs)
    _overlay(conf, (os.environ if environ is None else environ).items())


def _replace_marker(site_root: Path, marker: str, target_directory: Path) -> Path:
    if site_root.parts and site_root.parts[0] == marker:
        return target_directory / site_root.relative_to(marker)
    return site_root


def parse_project_config(
    directory: Path | str,
    data: Mapping[str, Any],
    target_directory: Path | str,
    environ: Mapping[str, str] | None = None,
) -> ProjectConfig:
    """Read a project section, overlay the environment and validate the result."""
    directory = Path(directory)
    target_directory = Path(target_directory)
    conf = ProjectConfig.from_metadata(data)
    conf.config_dir = directory
    conf.tmp_dir = target_directory / "tmp"
    overlay_env(conf, load_dotenvs(directory), environ)

    forbidden = {
        Path("/"),
        Path("."),
        Path(CARGO_TARGET_DIR_MARKER),
        Path(CARGO_BUILD_TARGET_DIR_MARKER),
    }
    if conf.site_root in forbidden:
        raise ConfigError(
            f"site-root cannot be '{conf.site_root}'. "
            "All the content is erased when building the site."
        )
    conf.site_root = _replace_marker(conf.site_root, CARGO_TARGET_DIR_MARKER, target_directory)
    conf.site_root = _replace_marker(
        conf.site_root, CARGO_BUILD_TARGET_DIR_MARKER, target_directory
    )
    if conf.site_port == conf.reload_port:
        raise ConfigError(
            f"The site-addr port and reload-port cannot be the same: {conf.reload_port}"
        )
    if conf.separate_front_target_dir is not None:
        log.warning("Depreciated the `separate-front-target-dir` option is deprecated")
        log.warning("Depreciated please remove it from your config in your Cargo.toml")
    return conf


@dataclass(frozen=True)
class TailwindConfig:
    """Input, configuration and output files of the tailwind step."""

    input_file: Path
    config_file: Path
    tmp_file: Path

    @classmethod
    def resolve(cls, conf: ProjectConfig) -> TailwindConfig | None:
        """The tailwind settings, or None when tailwind is not configured."""
        if conf.tailwind_input_file is None:
            if conf.tailwind_config_file is not None:
                raise ConfigError(
                    "The Cargo.toml `tailwind-input-file` is required when using "
                    "`tailwind-config-file`]"
                )
            return None
        config_file = conf.tailwind_config_file or Path("tailwind.config.js")
        return cls(
            input_file=conf.config_dir / conf.tailwind_input_file,
            config_file=conf.config_dir / config_file,
            tmp_file=conf.tmp_dir / "tailwind.css",
        )


@dataclass(frozen=True)
class StyleConfig:
    """Where the project's stylesheet comes from and where it goes."""

    file: SourcedSiteFile | None
    browserquery: str
    tailwind: TailwindConfig | None
    site_file: SiteFile

    @classmethod
    def resolve(cls, conf: ProjectConfig) -> StyleConfig:
        site_rel = _with_extension(conf.site_pkg_dir / conf.output_name, "css")
        site_file = SiteFile(dest=conf.site_root / site_rel, site=site_rel)
        style_file = None
        if conf.style_file is not None:
            style_file = SourcedSiteFile(
                source=conf.config_dir / conf.style_file,
                dest=conf.site_root / site_rel,
                site=site_rel,
            )
        return cls(
            file=style_file,
            browserquery=conf.browserquery,
            tailwind=TailwindConfig.resolve(conf),
            site_file=site_file,
        )


@dataclass(frozen=True)
class End2EndConfig:
    """The command that runs end-to-end tests and the directory it runs in."""

    cmd: str
    dir: Path

    @classmethod
    def resolve(cls, conf: ProjectConfig) -> End2EndConfig | None:
        if conf.end2end_cmd is None:
            return None
        directory = conf.end2end_dir if conf.end2end_dir is not None else Path("")
        return cls(cmd=conf.end2end_cmd, dir=directory)


@dataclass(frozen=True)
class AssetsConfig:
    """The directory whose content is copied into the site."""

    dir: Path

    @classmethod
    def resolve(cls, conf: ProjectConfig) -> AssetsConfig | None:
        if conf.assets_dir is None:
            return None
        return cls(dir=conf.config_dir / conf.assets_dir)