"""Cargo build profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Profile:
    """A cargo profile: the built-in debug or release one, or a custom named one."""

    name: str
    custom: bool = False

    DEBUG: ClassVar[Profile]
    RELEASE: ClassVar[Profile]

    @staticmethod
    def from_flags(is_release: bool, release: str | None = None, debug: str | None = None) -> Profile:
        """Pick the profile for a release or dev build, preferring a configured name."""
        if is_release:
            return Profile(release, custom=True) if release is not None else Profile.RELEASE
        return Profile(debug, custom=True) if debug is not None else Profile.DEBUG

    def cargo_args(self) -> list[str]:
        """The cargo arguments that select this profile."""
        if self.custom:
            return [f"--profile={self.name}"]
        if self == Profile.RELEASE:
            return ["--release"]
        return []

    def __str__(self) -> str:
        return self.name


Profile.DEBUG = Profile("debug")
Profile.RELEASE = Profile("release")