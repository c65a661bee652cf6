import pytest

from filezen.models.tree import (
    DirectoryTree,
    FileNode,
    FolderNode,
    ProjectNode,
    split_folder_path,
)


def make_tree() -> DirectoryTree:
    return DirectoryTree(
        projects=(
            ProjectNode(
                name="Sales",
                folders=(
                    FolderNode(
                        folder_id="10",
                        name="Reports",
                        access="read,write",
                        files=(FileNode(key="k1", name="a.pdf", size="100"),),
                    ),
                    FolderNode(folder_id="11", name="Archive", access="read"),
                ),
            ),
            ProjectNode(
                name="Dev",
                folders=(FolderNode(folder_id="20", name="Reports", access="write"),),
            ),
        )
    )


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("Sales/Reports", ("Sales", "Reports")),
        ("Sales/Reports/2026", ("Sales", "Reports/2026")),
        ("Inbox", ("", "Inbox")),
        ("/Inbox", ("", "Inbox")),
    ],
)
def test_split_folder_path(path: str, expected: tuple[str, str]) -> None:
    assert split_folder_path(path) == expected


def test_find_folder_returns_matching_folder() -> None:
    folder = make_tree().find_folder("Dev/Reports")

    assert folder.folder_id == "20"
    assert folder.exists is True


def test_find_folder_returns_empty_node_when_absent() -> None:
    folder = make_tree().find_folder("Sales/Missing")

    assert folder.folder_id == ""
    assert folder.exists is False


def test_find_file_returns_key() -> None:
    assert make_tree().find_file("Sales", "Reports", "a.pdf") == "k1"


def test_find_file_is_case_sensitive() -> None:
    assert make_tree().find_file("Sales", "Reports", "A.pdf") == ""


def test_find_file_returns_empty_when_absent() -> None:
    assert make_tree().find_file("Dev", "Reports", "a.pdf") == ""


def test_can_upload_into_writable_folder() -> None:
    assert make_tree().can_upload("Sales/Reports", "b.pdf") is True


def test_can_upload_rejects_existing_name() -> None:
    assert make_tree().can_upload("Sales/Reports", "a.pdf") is False


def test_can_upload_rejects_read_only_folder() -> None:
    assert make_tree().can_upload("Sales/Archive", "b.pdf") is False


def test_can_upload_rejects_unknown_folder() -> None:
    assert make_tree().can_upload("Nowhere/Reports", "b.pdf") is False


def test_can_upload_collision_wins_over_another_writable_match() -> None:
    tree = DirectoryTree(
        projects=(
            ProjectNode(
                name="P",
                folders=(
                    FolderNode(folder_id="1", name="F", access="write"),
                    FolderNode(
                        folder_id="2",
                        name="F",
                        access="read",
                        files=(FileNode(key="k", name="x.txt"),),
                    ),
                ),
            ),
        )
    )

    assert tree.can_upload("P/F", "x.txt") is False
    assert tree.can_upload("P/F", "y.txt") is True


def test_can_upload_checks_permission_only_with_empty_name() -> None:
    assert make_tree().can_upload("Dev/Reports", "") is True


def test_count_files_and_walk() -> None:
    tree = make_tree()

    assert tree.count_files() == 1
    ((project, folder, file),) = list(tree.walk())
    assert (project.name, folder.name, file.name) == ("Sales", "Reports", "a.pdf")


def test_file_node_size_and_timestamp_parsing() -> None:
    node = FileNode(key="k", name="n", size="bad", timestamp="1700000000")

    assert node.size_bytes == 0
    assert node.modified_at is not None
    assert node.modified_at.year == 2023
    assert FileNode(key="k", name="n").modified_at is None


def test_format_tree() -> None:
    output = make_tree().format_tree()

    assert output.splitlines() == [
        "[P] Sales",
        "  [D] Reports <read,write>",
        "    [F] a.pdf (100 B)",
        "  [D] Archive <read>",
        "[P] Dev",
        "  [D] Reports <write>",
    ]
