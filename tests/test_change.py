from pathlib import Path

import pytest

from leptosbuild.change import Change, ChangeKind, ChangeSet, Watched, WatchedKind


def test_all_changes_needs_every_build():
    changes = ChangeSet.all_changes()
    assert changes.need_server_build()
    assert changes.need_front_build()
    assert changes.need_style_build(True, False)
    assert changes.need_style_build(False, True)
    assert list(changes.assets()) == [Watched(WatchedKind.RESCAN)]
    assert len(changes) == 5


def test_empty_set_needs_nothing():
    changes = ChangeSet()
    assert len(changes) == 0
    assert not changes
    assert not changes.need_server_build()
    assert not changes.need_front_build()
    assert not changes.need_style_build(True, True)
    assert list(changes.assets()) == []


def test_add_deduplicates():
    changes = ChangeSet()
    assert changes.add(Change(ChangeKind.STYLE)) is True
    assert changes.add(Change(ChangeKind.STYLE)) is False
    assert list(changes) == [Change(ChangeKind.STYLE)]


def test_clear_empties():
    changes = ChangeSet.all_changes()
    changes.clear()
    assert len(changes) == 0
    assert not changes.need_server_build()


@pytest.mark.parametrize(
    "kind, server, front",
    [
        (ChangeKind.BIN_SOURCE, True, False),
        (ChangeKind.LIB_SOURCE, False, True),
        (ChangeKind.CONF, True, True),
        (ChangeKind.ADDITIONAL, True, True),
        (ChangeKind.STYLE, False, False),
    ],
)
def test_single_change_needs(kind, server, front):
    changes = ChangeSet([Change(kind)])
    assert changes.need_server_build() is server
    assert changes.need_front_build() is front


def test_style_build_depends_on_flags():
    style = ChangeSet([Change(ChangeKind.STYLE)])
    assert style.need_style_build(True, False)
    assert not style.need_style_build(False, True)
    lib = ChangeSet([Change(ChangeKind.LIB_SOURCE)])
    assert lib.need_style_build(False, True)
    assert not lib.need_style_build(True, False)


def test_assets_yields_in_order():
    first = Watched(WatchedKind.WRITE, Path("a.txt"))
    second = Watched(WatchedKind.RENAME, Path("b.txt"), Path("c.txt"))
    changes = ChangeSet(
        [
            Change(ChangeKind.ASSET, first),
            Change(ChangeKind.STYLE),
            Change(ChangeKind.ASSET, second),
            Change(ChangeKind.ASSET, Watched(WatchedKind.WRITE, "a.txt")),
        ]
    )
    assert list(changes.assets()) == [first, second]


def test_watched_validation():
    with pytest.raises(ValueError):
        Watched(WatchedKind.WRITE)
    with pytest.raises(ValueError):
        Watched(WatchedKind.RENAME, Path("a"))
    with pytest.raises(ValueError):
        Watched(WatchedKind.RESCAN, Path("a"))
    with pytest.raises(ValueError):
        Change(ChangeKind.ASSET)
    with pytest.raises(ValueError):
        Change(ChangeKind.STYLE, Watched(WatchedKind.RESCAN))


def test_watched_converts_strings_to_paths():
    watched = Watched(WatchedKind.CREATE, "dir/file.css")
    assert watched.path == Path("dir/file.css")