from filezen.models.tree import DirectoryTree, FileNode, FolderNode, ProjectNode
from filezen.services.tree_service import DirectoryTreeCache

TREE = DirectoryTree(
    projects=(
        ProjectNode(
            name="P",
            folders=(
                FolderNode(
                    folder_id="1",
                    name="F",
                    access="write",
                    files=(FileNode(key="k", name="x.txt"),),
                ),
            ),
        ),
    )
)


def test_new_cache_is_empty_and_stale() -> None:
    cache = DirectoryTreeCache()

    assert cache.tree == DirectoryTree.empty()
    assert cache.is_stale is True


def test_cache_with_initial_tree_is_fresh() -> None:
    assert DirectoryTreeCache(TREE).is_stale is False


def test_update_replaces_snapshot_and_clears_staleness() -> None:
    cache = DirectoryTreeCache()

    cache.update(TREE)

    assert cache.tree is TREE
    assert cache.is_stale is False


def test_invalidate_keeps_snapshot() -> None:
    cache = DirectoryTreeCache(TREE)

    cache.invalidate()

    assert cache.is_stale is True
    assert cache.tree is TREE


def test_clear_drops_snapshot() -> None:
    cache = DirectoryTreeCache(TREE)

    cache.clear()

    assert cache.tree == DirectoryTree.empty()
    assert cache.is_stale is True


def test_lookups_delegate_to_snapshot() -> None:
    cache = DirectoryTreeCache(TREE)

    assert cache.find_folder("P/F").folder_id == "1"
    assert cache.find_file("P", "F", "x.txt") == "k"
    assert cache.can_upload("P/F", "x.txt") is False
    assert cache.can_upload("P/F", "y.txt") is True


def test_stale_lookups_still_answer() -> None:
    cache = DirectoryTreeCache(TREE)
    cache.invalidate()

    assert cache.find_file("P", "F", "x.txt") == "k"
