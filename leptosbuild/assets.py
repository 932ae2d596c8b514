"""Synchronisation of the assets directory into the site directory."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

log = logging.getLogger(__name__)


def reserved(src: Path | str, pkg_dir: Path | str) -> list[Path]:
    """Paths in the assets directory that must not be copied into the site."""
    return [Path(src) / "index.html", Path(pkg_dir)]


def clean_dest(dest: Path | str, pkg_dir: Path | str) -> None:
    """Remove everything from the site directory except the pkg dir and index.html."""
    pkg_dir_name = Path(pkg_dir).name
    if not pkg_dir_name:
        log.warning("Assets No site-pkg-dir given, defaulting to 'pkg' for checks what to delete.")
        log.warning("Assets This will probably delete already generated files.")
        pkg_dir_name = "pkg"

    for entry in Path(dest).iterdir():
        if entry.is_dir() and not entry.is_symlink():
            if entry.name != pkg_dir_name:
                log.debug("Assets removing folder %s", entry)
                shutil.rmtree(entry)
        elif entry.name != "index.html":
            log.debug("Assets removing file %s", entry)
            entry.unlink()


def mirror(src_root: Path | str, dest_root: Path | str, reserved_paths: Sequence[Path]) -> None:
    """Copy every entry of the source directory into the destination, skipping reserved ones."""
    src_root = Path(src_root)
    dest_root = Path(dest_root)
    reserved_set = {Path(p) for p in reserved_paths}
    for source in src_root.iterdir():
        target = dest_root / source.relative_to(src_root)
        if source in reserved_set:
            log.warning("Assets skipping reserved path %s", source)
            continue
        if source.is_dir():
            log.debug("Assets copy folder %s -> %s", source, target)
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            log.debug("Assets copy file %s -> %s", source, target)
            shutil.copy2(source, target)


def resync(src: Path | str, dest: Path | str, pkg_dir: Path | str) -> None:
    """Clean the site directory and copy the assets into it again."""
    clean_dest(dest, pkg_dir)
    mirror(src, dest, reserved(src, pkg_dir))