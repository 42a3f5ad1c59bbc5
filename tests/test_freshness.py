from conftest import touch

from dots_tangle.roles.tangle.freshness import FreshnessSet, isOlder, resolve
from dots_tangle.roles.tangle.targets import TangleTarget


def test_missing_path_is_older(tmp_path):
    src = touch(tmp_path / "a.org", 1000)
    assert isOlder(str(tmp_path / "a.el"), src)


def test_equal_mtime_is_up_to_date(tmp_path):
    src = touch(tmp_path / "a.org", 1000)
    dest = touch(tmp_path / "a.el", 1000)
    assert not isOlder(dest, src)


def test_fresh_destinations_are_not_tangled(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    newer = touch(tmp_path / "init.el", 2000)
    same = touch(tmp_path / "tool.sh", 1000)
    targets = [TangleTarget(src, newer), TangleTarget(src, same)]

    fresh = resolve(config, src, [], targets, compileRequested=False)

    assert fresh.toTangle == set()
    assert fresh.toCompile == set()
    assert not fresh


def test_stale_secondary_source_is_tangled_alone(config, tmp_path):
    primary = touch(tmp_path / "init.org", 1000)
    initEl = touch(tmp_path / "init.el", 2000)
    touch(tmp_path / "init.elc", 2000)
    sub = touch(tmp_path / "lisp" / "sub.org", 3000)
    subEl = touch(tmp_path / "lisp" / "sub.el", 2500)
    targets = [TangleTarget(primary, initEl), TangleTarget(sub, subEl)]

    fresh = resolve(config, primary, [], targets, compileRequested=True)

    assert fresh.toTangle == {sub}
    assert fresh.toCompile == {subEl}


def test_stale_destination_not_compiled_without_request(config, tmp_path):
    primary = touch(tmp_path / "init.org", 1000)
    sub = touch(tmp_path / "sub.org", 3000)
    subEl = touch(tmp_path / "sub.el", 2000)

    fresh = resolve(config, primary, [], [TangleTarget(sub, subEl)], compileRequested=False)

    assert fresh.toTangle == {sub}
    assert fresh.toCompile == set()


def test_primary_source_collapses_sets(config, tmp_path):
    src = touch(tmp_path / "a.org", 2000)
    aEl = str(tmp_path / "a.el")
    bPy = touch(tmp_path / "b.py", 3000)
    other = touch(tmp_path / "other.org", 1000)
    otherEl = touch(tmp_path / "other.el", 500)
    targets = [TangleTarget(src, aEl), TangleTarget(src, bPy), TangleTarget(other, otherEl)]

    fresh = resolve(config, src, [], targets, compileRequested=True)

    assert fresh.toTangle == {src}
    assert fresh.toCompile == {aEl, otherEl}


def test_collapse_assigns_compile_set_without_request(config, tmp_path):
    src = touch(tmp_path / "a.org", 2000)
    aEl = str(tmp_path / "a.el")

    fresh = resolve(config, src, [], [TangleTarget(src, aEl)], compileRequested=False)

    assert fresh.toTangle == {src}
    assert fresh.toCompile == {aEl}


def test_outdated_compiled_output_is_rebuilt(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    initEl = touch(tmp_path / "init.el", 2000)
    touch(tmp_path / "init.elc", 1500)
    early = touch(tmp_path / "early-init.el", 2000)
    touch(tmp_path / "early-init.elc", 2000)
    targets = [TangleTarget(src, initEl), TangleTarget(src, early)]

    fresh = resolve(config, src, [], targets, compileRequested=True)

    assert fresh.toTangle == set()
    assert fresh.toCompile == {initEl}


def test_ignored_destinations_skip_the_compiled_sibling_check(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    locals_ = touch(tmp_path / ".dir-locals.el", 2000)
    initEl = touch(tmp_path / "init.el", 2000)
    targets = [TangleTarget(src, locals_), TangleTarget(src, initEl)]

    fresh = resolve(config, src, [], targets, compileRequested=True)

    assert fresh.toTangle == set()
    assert fresh.toCompile == {initEl}


def test_stale_ignored_destination_is_still_compiled(config, tmp_path):
    primary = touch(tmp_path / "init.org", 1000)
    sub = touch(tmp_path / "sub.org", 3000)
    locals_ = str(tmp_path / ".dir-locals.el")

    fresh = resolve(config, primary, [], [TangleTarget(sub, locals_)], compileRequested=True)

    assert fresh.toTangle == {sub}
    assert fresh.toCompile == {locals_}


def test_collapse_includes_ignored_destinations(config, tmp_path):
    src = touch(tmp_path / "init.org", 2000)
    locals_ = str(tmp_path / ".dir-locals.el")
    initEl = str(tmp_path / "init.el")
    targets = [TangleTarget(src, locals_), TangleTarget(src, initEl)]

    fresh = resolve(config, src, [], targets, compileRequested=True)

    assert fresh.toTangle == {src}
    assert fresh.toCompile == {locals_, initEl}


def test_newer_dependency_forces_primary(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    initEl = touch(tmp_path / "init.el", 2000)
    touch(tmp_path / "init.elc", 2000)
    dep = touch(tmp_path / "early-init.el", 3000)

    fresh = resolve(config, src, [dep], [TangleTarget(src, initEl)], compileRequested=True)

    assert fresh.toTangle == {src}
    assert fresh.toCompile == {initEl}


def test_dependency_forces_before_any_target_is_checked(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    dep = touch(tmp_path / "deps.el", 1000)

    fresh = resolve(config, src, [dep], iter([]), compileRequested=False)

    assert fresh.toTangle == {src}
    assert fresh.toCompile == set()


def test_older_or_missing_dependencies_are_skipped(config, tmp_path):
    src = touch(tmp_path / "init.org", 1000)
    initEl = touch(tmp_path / "init.el", 2000)
    old = touch(tmp_path / "old.el", 2000)

    fresh = resolve(config, src, [old, str(tmp_path / "missing.el")], [TangleTarget(src, initEl)], False)

    assert fresh == FreshnessSet()
