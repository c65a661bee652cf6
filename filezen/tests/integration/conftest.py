import os

import pytest


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    missing = not (
        os.getenv("FILEZEN_TEST_URL")
        and os.getenv("FILEZEN_TEST_USER")
        and os.getenv("FILEZEN_TEST_PASSWORD")
    )
    if not missing:
        return
    mark_expr = getattr(config.option, "markexpr", "")
    if "integration" in mark_expr:
        return
    skip = pytest.mark.skip(
        reason="FILEZEN_TEST_URL / FILEZEN_TEST_USER / FILEZEN_TEST_PASSWORD not set"
    )
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip)


@pytest.fixture(scope="session")
def filezen_credentials() -> tuple[str, str, str]:
    url = os.getenv("FILEZEN_TEST_URL")
    user = os.getenv("FILEZEN_TEST_USER")
    password = os.getenv("FILEZEN_TEST_PASSWORD")
    if not url or not user or not password:
        pytest.fail(
            "FILEZEN_TEST_URL, FILEZEN_TEST_USER and FILEZEN_TEST_PASSWORD must be set "
            "to run integration tests."
        )
    return url, user, password


@pytest.fixture(scope="session")
def writable_folder() -> str:
    folder = os.getenv("FILEZEN_TEST_FOLDER")
    if not folder:
        pytest.skip("FILEZEN_TEST_FOLDER not set")
    return folder
