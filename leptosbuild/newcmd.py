"""Create a new project from a template with cargo-generate."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass

_KNOWN_TEMPLATES = {
    "leptos-rs/start": "https://github.com/leptos-rs/start",
    "leptos-rs/start-axum": "https://github.com/leptos-rs/start-axum",
}

_SPAWN_ERROR = "Could not spawn cargo-generate command (verify that it is installed)"


def absolute_git_url(url: str | None) -> str | None:
    """Expand the short names of the known starter templates to full URLs."""
    if url is None:
        return None
    return _KNOWN_TEMPLATES.get(url, url)


@dataclass
class NewCommand:
    """Options passed through to cargo-generate."""

    git: str | None = None
    branch: str | None = None
    tag: str | None = None
    path: str | None = None
    name: str | None = None
    force: bool = False
    verbose: bool = False
    init: bool = False

    def __post_init__(self) -> None:
        if self.git is not None and self.path is not None:
            raise ValueError("--git and --path cannot be used together")
        if self.branch is not None and self.tag is not None:
            raise ValueError("--branch and --tag cannot be used together")

    def to_args(self) -> list[str]:
        """The cargo-generate arguments for these options."""
        args: list[str] = []
        options = {
            "git": absolute_git_url(self.git),
            "branch": self.branch,
            "tag": self.tag,
            "path": self.path,
            "name": self.name,
        }
        for option, value in options.items():
            if value is not None:
                args += [f"--{option}", value]
        flags = {"force": self.force, "verbose": self.verbose, "init": self.init}
        args += [f"--{flag}" for flag, is_set in flags.items() if is_set]
        return args

    def run(self) -> int:
        """Run cargo-generate and return its exit code."""
        exe = shutil.which("cargo-generate")
        if exe is None:
            raise FileNotFoundError(_SPAWN_ERROR)
        try:
            completed = subprocess.run([exe, "generate", *self.to_args()], check=False)
        except OSError as err:
            raise RuntimeError(_SPAWN_ERROR) from err
        return completed.returncode