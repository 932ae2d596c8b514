"""The test and end-to-end commands."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from leptosbuild.cargo_cmd import build_front_command, build_server_command
from leptosbuild.project import Config, Project

log = logging.getLogger(__name__)


def test_project(proj: Project) -> bool:
    """Run the cargo tests of the server and the front-end; True if both pass."""
    server = build_server_command("test", proj)
    server_status = server.spawn().wait()
    log.debug("Cargo envs: %s", server.env_string())
    log.info("Cargo server tests finished %s", server.line())

    front = build_front_command("test", False, proj)
    front_status = front.spawn().wait()
    log.debug("Cargo envs: %s", front.env_string())
    log.info("Cargo front tests finished %s", front.line())

    return server_status == 0 and front_status == 0


def test_all(config: Config) -> None:
    """Test every project; raise naming the first project whose tests failed."""
    first_failed: Project | None = None
    for proj in config.projects:
        if not test_project(proj) and first_failed is None:
            first_failed = proj
    if first_failed is not None:
        raise RuntimeError(f"Tests failed for {first_failed.name}")


def run_end2end_command(cmd: str, directory: Path | str) -> None:
    """Run a space separated command in the directory; raise if it fails."""
    exe, *args = cmd.split(" ")
    log.debug("End2End running %r", cmd)
    try:
        process = subprocess.Popen([exe, *args], cwd=Path(directory))
    except OSError as err:
        raise RuntimeError(f"Could not spawn command {cmd!r}") from err
    try:
        status = process.wait()
    except KeyboardInterrupt:
        process.terminate()
        process.wait()
        return
    if status != 0:
        raise RuntimeError(f"Command terminated with exit code {status}")