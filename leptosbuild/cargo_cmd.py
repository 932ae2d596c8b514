"""Cargo command lines for building the server and the front-end of a project."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from leptosbuild.profile import Profile
from leptosbuild.project import Project

log = logging.getLogger(__name__)

WASM_TARGET = "wasm32-unknown-unknown"


@dataclass(frozen=True)
class CargoCommand:
    """A cargo invocation: the program, its arguments and extra environment."""

    program: str
    args: tuple[str, ...]
    envs: tuple[tuple[str, str], ...]

    def line(self) -> str:
        """The command as shown to the user."""
        return " ".join(["cargo", *self.args])

    def env_string(self) -> str:
        """The extra environment as space separated NAME=value pairs."""
        return " ".join(f"{name}={value}" for name, value in self.envs)

    def spawn(self) -> subprocess.Popen:
        """Start the command with the extra environment added to the current one."""
        env = {**os.environ, **dict(self.envs)}
        return subprocess.Popen([self.program, *self.args], env=env)


def _common_tail(
    args: list[str],
    default_features: bool,
    features: Sequence[str],
    cargo_args: Sequence[str] | None,
    profile: Profile,
) -> None:
    if not default_features:
        args.append("--no-default-features")
    if features:
        args.append(f"--features={','.join(features)}")
    if cargo_args:
        args.append(" ".join(cargo_args))
    args.extend(profile.cargo_args())


def build_server_command(cmd: str, proj: Project) -> CargoCommand:
    """The cargo command that runs `cmd` on the server package of the project."""
    binp = proj.bin
    args = [cmd, f"--package={binp.name}"]
    if cmd != "test":
        args.append(f"--bin={binp.target}")
    if binp.target_dir is not None:
        args.append(f"--target-dir={binp.target_dir}")
    if binp.target_triple is not None:
        args.append(f"--target={binp.target_triple}")
    log.debug("BIN CARGO ARGS: %r", binp.cargo_args)
    _common_tail(args, binp.default_features, binp.features, binp.cargo_args, binp.profile)
    return CargoCommand(
        program=binp.cargo_command or "cargo",
        args=tuple(args),
        envs=tuple(proj.to_envs()),
    )


def build_front_command(cmd: str, wasm: bool, proj: Project) -> CargoCommand:
    """The cargo command that runs `cmd` on the lib package of the project."""
    lib = proj.lib
    args = [
        cmd,
        f"--package={lib.name}",
        "--lib",
        f"--target-dir={lib.front_target_path}",
    ]
    if wasm:
        args.append(f"--target={WASM_TARGET}")
    _common_tail(args, lib.default_features, lib.features, lib.cargo_args, lib.profile)
    return CargoCommand(program="cargo", args=tuple(args), envs=tuple(proj.to_envs()))