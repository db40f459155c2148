"""Tests for the incremental update merge."""

from git_store_meta.codec import escape_path
from git_store_meta.core import ChangeEntry, ChangeKind
from git_store_meta.update import collect_changes, merge_snapshot, placeholder_entries

OLD = "2020-01-01T00:00:00Z"
NEW = "2024-06-01T12:00:00Z"


def line(path, kind="f", mtime=OLD):
    return f"{escape_path(path)}\t{kind}\t{mtime}"


def fresh_collector(*paths, kinds=None):
    """Collector returning a NEW record for the given paths, None otherwise."""
    kinds = kinds or {}
    calls = []

    def collect(path):
        calls.append(path)
        if path in paths:
            return line(path, kinds.get(path, "f"), NEW)
        return None
    collect.calls = calls
    return collect


def assert_sorted_unique(lines):
    keys = [l.split("\t", 1)[0].encode("utf-8", "surrogateescape") for l in lines]
    assert keys == sorted(set(keys))


class TestCollectChanges:
    """Test translation of git name-status into change entries."""

    def test_modified_and_added_without_directories(self):
        entries = collect_changes([("M", "a/b.txt"), ("A", "c/d/e.txt")])
        assert entries == [
            ChangeEntry("a/b.txt", ChangeKind.MODIFIED),
            ChangeEntry("c/d/e.txt", ChangeKind.MODIFIED),
        ]

    def test_added_marks_ancestors_modified(self):
        entries = collect_changes([("A", "c/d/e.txt")], directory=True)
        assert entries == [
            ChangeEntry("c/d/e.txt", ChangeKind.MODIFIED),
            ChangeEntry("c/d", ChangeKind.MODIFIED),
            ChangeEntry("c", ChangeKind.MODIFIED),
        ]

    def test_modified_does_not_touch_ancestors(self):
        entries = collect_changes([("M", "c/d/e.txt")], directory=True)
        assert entries == [ChangeEntry("c/d/e.txt", ChangeKind.MODIFIED)]

    def test_deleted_marks_parent_modified_and_ancestors_deleted(self):
        entries = collect_changes([("D", "c/d/e.txt")], directory=True)
        assert entries == [
            ChangeEntry("c/d/e.txt", ChangeKind.DELETED),
            ChangeEntry("c/d", ChangeKind.MODIFIED),
            ChangeEntry("c/d", ChangeKind.DELETED),
            ChangeEntry("c", ChangeKind.DELETED),
        ]

    def test_deleted_top_level_file(self):
        entries = collect_changes([("D", "top.txt")], directory=True)
        assert entries == [ChangeEntry("top.txt", ChangeKind.DELETED)]

    def test_type_change_treated_as_modified(self):
        entries = collect_changes([("T", "link")])
        assert entries == [ChangeEntry("link", ChangeKind.MODIFIED)]

    def test_paths_are_escaped(self):
        entries = collect_changes([("M", "odd\tname")])
        assert entries[0].path == "odd\\x09name"

    def test_placeholders(self):
        assert placeholder_entries(["a", "a/b"]) == [
            ChangeEntry("a", ChangeKind.PLACEHOLDER),
            ChangeEntry("a/b", ChangeKind.PLACEHOLDER),
        ]


class TestMergeSnapshot:
    """Test the merge of change entries into baseline lines."""

    def test_no_changes_keeps_baseline(self):
        baseline = [line("a", "d"), line("a/b.txt"), line("c.txt")]
        collect = fresh_collector()
        assert merge_snapshot(baseline, [], collect) == baseline
        assert collect.calls == []

    def test_baseline_is_resorted(self):
        baseline = [line("c.txt"), line("a/b.txt"), line("a", "d")]
        result = merge_snapshot(baseline, [], fresh_collector())
        assert result == [line("a", "d"), line("a/b.txt"), line("c.txt")]

    def test_modified_is_recollected(self):
        baseline = [line("a.txt"), line("b.txt")]
        entries = collect_changes([("M", "a.txt")])
        result = merge_snapshot(baseline, entries, fresh_collector("a.txt"))
        assert result == [line("a.txt", mtime=NEW), line("b.txt")]

    def test_added_is_inserted_in_order(self):
        baseline = [line("a.txt"), line("c.txt")]
        entries = collect_changes([("A", "b.txt")])
        result = merge_snapshot(baseline, entries, fresh_collector("b.txt"))
        assert result == [line("a.txt"), line("b.txt", mtime=NEW), line("c.txt")]

    def test_deleted_is_dropped(self):
        baseline = [line("a.txt"), line("b.txt")]
        entries = collect_changes([("D", "a.txt")])
        assert merge_snapshot(baseline, entries, fresh_collector()) == [line("b.txt")]

    def test_delete_with_surviving_parent_recollects_parent(self):
        baseline = [line("a", "d"), line("a/b.txt"), line("a/c.txt")]
        entries = collect_changes([("D", "a/b.txt")], directory=True)
        entries += placeholder_entries(["a"])
        collect = fresh_collector("a", kinds={"a": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert result == [line("a", "d", NEW), line("a/c.txt")]
        assert collect.calls == ["a"]

    def test_delete_of_last_file_drops_directory(self):
        baseline = [line("a", "d"), line("a/b.txt"), line("z.txt")]
        entries = collect_changes([("D", "a/b.txt")], directory=True)
        # "a" is gone from the new tree, so no placeholder
        collect = fresh_collector("a", kinds={"a": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert result == [line("z.txt")]
        assert collect.calls == []

    def test_placeholder_resurrects_tentatively_deleted_ancestor(self):
        baseline = [
            line("a", "d"),
            line("a/keep.txt"),
            line("a/x", "d"),
            line("a/x/old.txt"),
        ]
        entries = collect_changes([("D", "a/x/old.txt")], directory=True)
        entries += placeholder_entries(["a"])

        result = merge_snapshot(baseline, entries, fresh_collector("a/x", kinds={"a/x": "d"}))

        # "a" keeps its stored line; "a/x" and its file are gone
        assert result == [line("a", "d"), line("a/keep.txt")]

    def test_delete_and_add_in_same_directory(self):
        baseline = [line("a", "d"), line("a/old.txt")]
        entries = collect_changes([("A", "a/new.txt"), ("D", "a/old.txt")], directory=True)
        entries += placeholder_entries(["a"])
        collect = fresh_collector("a", "a/new.txt", kinds={"a": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert result == [line("a", "d", NEW), line("a/new.txt", mtime=NEW)]
        assert sorted(collect.calls) == ["a", "a/new.txt"]

    def test_directory_deleted_and_recreated(self):
        # a/ lost its only file and gained another one in a new subdirectory
        baseline = [line("a", "d"), line("a/f.txt")]
        entries = collect_changes([("D", "a/f.txt"), ("A", "a/s/g.txt")], directory=True)
        entries += placeholder_entries(["a", "a/s"])
        collect = fresh_collector("a", "a/s", "a/s/g.txt", kinds={"a": "d", "a/s": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert result == [
            line("a", "d", NEW),
            line("a/s", "d", NEW),
            line("a/s/g.txt", mtime=NEW),
        ]

    def test_rename_is_delete_plus_add(self):
        baseline = [line("a", "d"), line("a/b.txt")]
        entries = collect_changes([("A", "x/y.txt"), ("D", "a/b.txt")], directory=True)
        entries += placeholder_entries(["x"])
        collect = fresh_collector("x", "x/y.txt", kinds={"x": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert result == [line("x", "d", NEW), line("x/y.txt", mtime=NEW)]

    def test_collector_none_drops_path(self):
        baseline = [line("sock"), line("z.txt")]
        entries = collect_changes([("M", "sock")])
        assert merge_snapshot(baseline, entries, fresh_collector()) == [line("z.txt")]

    def test_collector_receives_unescaped_path(self):
        baseline = [line("tab\there")]
        entries = collect_changes([("M", "tab\there")])
        collect = fresh_collector("tab\there")

        result = merge_snapshot(baseline, entries, collect)

        assert collect.calls == ["tab\there"]
        assert result == [line("tab\there", mtime=NEW)]

    def test_duplicate_entries_collect_once(self):
        baseline = [line("a", "d")]
        entries = collect_changes(
            [("A", "a/one.txt"), ("A", "a/two.txt")], directory=True
        ) + placeholder_entries(["a"])
        collect = fresh_collector("a", "a/one.txt", "a/two.txt", kinds={"a": "d"})

        result = merge_snapshot(baseline, entries, collect)

        assert collect.calls.count("a") == 1
        assert_sorted_unique(result)
        assert len(result) == 3

    def test_output_sorted_and_unique(self):
        baseline = [line(p) for p in ["m", "b/c", "b", "a", "z/y/x"]]
        entries = collect_changes(
            [("D", "b/c"), ("A", "b/d"), ("M", "m"), ("A", "q/r")], directory=True
        ) + placeholder_entries(["b", "q", "z", "z/y"])
        collect = fresh_collector("b", "b/d", "m", "q", "q/r")

        result = merge_snapshot(baseline, entries, collect)

        assert_sorted_unique(result)
        assert [l.split("\t")[0] for l in result] == ["a", "b", "b/d", "m", "q", "q/r", "z/y/x"]

    def test_undecodable_name_sorts_by_bytes(self):
        raw = b"\xa9".decode("utf-8", "surrogateescape")
        baseline = [line("é"), line(raw)]
        entries = collect_changes([("A", "é/new")], directory=True)
        collect = fresh_collector("é", "é/new")

        result = merge_snapshot(baseline, entries, collect)

        # b"\xa9" < b"\xc3\xa9", although U+DCA9 > U+00E9
        assert [l.split("\t")[0] for l in result] == [raw, "é", "é/new"]
        assert_sorted_unique(result)
