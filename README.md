# leptosbuild

A library for building Leptos web projects from Python. It reads the
`[package.metadata.leptos]` and `[[workspace.metadata.leptos]]` sections of a
Cargo workspace (through `cargo metadata`), resolves each project's server
(bin) and client (lib) packages, and produces the `cargo` command lines and
environment variables needed to build and test them.

## Modules

- `leptosbuild.projectconfig` – `ProjectConfig` read from a metadata section
  (kebab-case keys), `parse_project_config` which applies `.env` values
  (searched upwards from the project directory by `load_dotenvs`) and
  `LEPTOS_*` environment variables, then validates the result. Also
  `TailwindConfig`, `StyleConfig`, `End2EndConfig`, `AssetsConfig`,
  `SiteFile` and `SourcedSiteFile`. Invalid settings raise `ConfigError`.
- `leptosbuild.packages` – `Metadata` (from `cargo metadata` JSON or by running
  `Metadata.load`), `Package`, `Target`, and the resolved `BinPackage` and
  `LibPackage` of a project.
- `leptosbuild.project` – `ProjectDefinition`, `Project` (with `to_envs`) and
  `Config` (with `load`, `from_metadata` and `current_project`).
- `leptosbuild.cargo_cmd` – `build_server_command` and `build_front_command`
  return a `CargoCommand` with `line()`, `env_string()` and `spawn()`.
- `leptosbuild.profile` – `Profile`: debug, release or a named cargo profile.
- `leptosbuild.change` – `ChangeSet` of `Change`s, telling whether the server,
  front end or styles need rebuilding.
- `leptosbuild.assets` – `resync`, `clean_dest`, `mirror` and `reserved` for
  copying an assets directory into the site root while keeping the package
  directory and `index.html`.
- `leptosbuild.commands` – `test_project`, `test_all` and `run_end2end_command`.
- `leptosbuild.cli` – `build_parser` and `parse_args` turn a command line into a
  `Cli` holding either `Opts` (for `build`, `test`, `end-to-end`, `serve`,
  `watch`) or a `NewCommand` (for `new`).
- `leptosbuild.newcmd` – `NewCommand`, whose `to_args()` gives arguments for
  `cargo generate` and whose `run()` runs it.

## Installation

Install the package with your usual Python package installer; the only
runtime dependency is `python-dotenv`. A `test` extra pulls in `pytest`.

## Usage

Parse command-line style options and load the workspace configuration:

```python
from pathlib import Path

from leptosbuild.cli import parse_args
from leptosbuild.project import Config

cli = parse_args(["build", "--release"])
opts = cli.opts()

config = Config.load(opts, Path.cwd(), Path("Cargo.toml"), False)
project = config.current_project()
print(project.to_envs())
```

Build the cargo command lines for the server and the WASM front end:

```python
from leptosbuild.cargo_cmd import build_front_command, build_server_command

server = build_server_command("build", project)
front = build_front_command("build", True, project)

print(server.line())        # cargo build --package=... --bin=... --release
print(server.env_string())  # LEPTOS_OUTPUT_NAME=... LEPTOS_SITE_ROOT=... ...
process = server.spawn()
process.wait()
```

Decide what needs rebuilding:

```python
from leptosbuild.change import ChangeSet

changes = ChangeSet.all_changes()
if changes.need_server_build():
    ...
if changes.need_style_build(True, False):
    ...
for watched in changes.assets():
    ...
```

Choose a cargo profile:

```python
from leptosbuild.profile import Profile

profile = Profile.from_flags(True, None, None)
print(profile.cargo_args())  # ['--release']
```

Run the cargo tests of every configured project:

```python
from leptosbuild.commands import test_all

test_all(config)  # raises RuntimeError naming the first project that failed
```

Prepare arguments for generating a new project from a template:

```python
from leptosbuild.newcmd import NewCommand

new = NewCommand(path="../my-template", name="my-app")
print(new.to_args())
# ['--path', '../my-template', '--name', 'my-app']
```

Short names of the known starter templates given to `git` are expanded to
their full repository addresses.

## Environment overrides

The following variables override values from `Cargo.toml`:

| Variable | Setting |
| --- | --- |
| `LEPTOS_OUTPUT_NAME` | output name of the generated files |
| `LEPTOS_SITE_ROOT` | site root directory |
| `LEPTOS_SITE_PKG_DIR` | package directory inside the site root |
| `LEPTOS_STYLE_FILE` | style sheet source |
| `LEPTOS_ASSETS_DIR` | assets directory |
| `LEPTOS_SITE_ADDR` | address the site is served on |
| `LEPTOS_RELOAD_PORT` | port of the reload server |
| `LEPTOS_END2END_CMD` | end-to-end test command |
| `LEPTOS_END2END_DIR` | directory the end-to-end command runs in |
| `LEPTOS_BROWSERQUERY` | browserslist query for CSS processing |
| `LEPTOS_BIN_TARGET_TRIPLE` | target triple for the server build |
| `LEPTOS_BIN_TARGET_DIR` | target directory for the server build |
| `LEPTOS_BIN_CARGO_COMMAND` | command to run instead of `cargo` for the server |

Other `LEPTOS_*` variables are reported as unused with a logged warning.
Configuration errors, such as a site root of `/`, `.` or a bare target
directory marker, or a site port equal to the reload port, raise `ConfigError`.

## What it does not do

This is a library; it installs no command. The command line parser describes
the `build`, `serve`, `watch`, `test`, `end-to-end` and `new` subcommands, but
nothing here dispatches them. The package does not run `wasm-bindgen` or
`wasm-opt`, compile Sass or Tailwind, process or minify CSS, precompress
static files, serve the site, watch files or send reload signals. It builds
the cargo invocations and configuration those steps need, runs cargo tests
and end-to-end commands, and syncs assets.