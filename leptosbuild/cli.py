"""Command line parsing."""

from __future__ import annotations

import argparse
import copy
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from leptosbuild.newcmd import NewCommand

_VERSION = "0.1.0"

_OPTS_COMMANDS = {
    "build": "Build the server (feature ssr) and the client (wasm with feature hydrate).",
    "test": "Run the cargo tests for app, client and server.",
    "end-to-end": "Start the server and end-2-end tests.",
    "serve": "Serve. Defaults to hydrate mode.",
    "watch": "Serve and automatically reload when files change.",
}


class Log(Enum):
    """Dependencies whose logs can be shown."""

    WASM = "wasm"
    SERVER = "server"


@dataclass
class Opts:
    """Options shared by the build, test, serve, watch and end-to-end commands."""

    release: bool = False
    precompress: bool = False
    hot_reload: bool = False
    project: str | None = None
    features: list[str] = field(default_factory=list)
    lib_features: list[str] = field(default_factory=list)
    lib_cargo_args: list[str] | None = None
    bin_features: list[str] = field(default_factory=list)
    bin_cargo_args: list[str] | None = None
    verbose: int = 0


@dataclass
class Cli:
    """A parsed command line: the subcommand with its arguments and global options."""

    command: str
    args: Opts | NewCommand
    manifest_path: Path | None = None
    log: list[Log] = field(default_factory=list)

    def opts(self) -> Opts | None:
        """A copy of the build options, or None for the new command."""
        if isinstance(self.args, Opts):
            return copy.deepcopy(self.args)
        return None


def _add_opts(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-r", "--release", action="store_true",
                        help="Build artifacts in release mode, with optimizations.")
    parser.add_argument("-P", "--precompress", action="store_true",
                        help="Precompress static assets with gzip and brotli. Release builds only.")
    parser.add_argument("--hot-reload", action="store_true",
                        help="Turn on partial hot-reloading.")
    parser.add_argument("-p", "--project",
                        help="Which project to use, from a list of projects defined in a workspace.")
    parser.add_argument("--features", action="append", default=[],
                        help="The features to use when compiling all targets.")
    parser.add_argument("--lib-features", action="append", default=[],
                        help="The features to use when compiling the lib target.")
    parser.add_argument("--lib-cargo-args", action="append", default=None,
                        help="The cargo flags to pass when compiling the lib target.")
    parser.add_argument("--bin-features", action="append", default=[],
                        help="The features to use when compiling the bin target.")
    parser.add_argument("--bin-cargo-args", action="append", default=None,
                        help="The cargo flags to pass when compiling the bin target.")
    parser.add_argument("-v", dest="verbose", action="count", default=0,
                        help="Verbosity (-v: verbose, -vv: very verbose).")


def _add_new(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-g", "--git", help="Git repository to clone the template from.")
    source.add_argument("-p", "--path", help="Local path to copy the template from.")
    ref = parser.add_mutually_exclusive_group()
    ref.add_argument("-b", "--branch", help="Branch to use when installing from git.")
    ref.add_argument("-t", "--tag", help="Tag to use when installing from git.")
    parser.add_argument("-n", "--name", help="Directory to create / project name.")
    parser.add_argument("-f", "--force", action="store_true",
                        help="Don't convert the project name to kebab-case.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enables more verbose output.")
    parser.add_argument("--init", action="store_true",
                        help="Generate the template directly into the current dir.")


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the whole command line."""
    parser = argparse.ArgumentParser(prog="cargo-leptos")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.add_argument("--manifest-path", type=Path, help="Path to Cargo.toml.")
    parser.add_argument("--log", action="append", default=[], choices=[log.value for log in Log],
                        help="Output logs from dependencies (multiple --log accepted).")
    commands = parser.add_subparsers(dest="command", required=True)
    for name, description in _OPTS_COMMANDS.items():
        sub = commands.add_parser(name, help=description, description=description)
        _add_opts(sub)
        sub.set_defaults(_parser=sub)
    new = commands.add_parser(
        "new",
        help="Start wizard for creating a new project (using cargo-generate).",
        description="Start wizard for creating a new project (using cargo-generate).",
    )
    _add_new(new)
    new.set_defaults(_parser=new)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Cli:
    """Parse a command line; argparse exits on invalid input."""
    parser = build_parser()
    ns = parser.parse_args(sys.argv[1:] if argv is None else list(argv))
    if ns.command == "new":
        args: Opts | NewCommand = NewCommand(
            git=ns.git,
            branch=ns.branch,
            tag=ns.tag,
            path=ns.path,
            name=ns.name,
            force=ns.force,
            verbose=ns.verbose,
            init=ns.init,
        )
        if args == NewCommand():
            ns._parser.print_help(sys.stderr)
            raise SystemExit(2)
    else:
        args = Opts(
            release=ns.release,
            precompress=ns.precompress,
            hot_reload=ns.hot_reload,
            project=ns.project,
            features=ns.features,
            lib_features=ns.lib_features,
            lib_cargo_args=ns.lib_cargo_args,
            bin_features=ns.bin_features,
            bin_cargo_args=ns.bin_cargo_args,
            verbose=ns.verbose,
        )
    return Cli(
        command=ns.command,
        args=args,
        manifest_path=ns.manifest_path,
        log=[Log(value) for value in ns.log],
    )