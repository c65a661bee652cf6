import pytest

from filezen.config import MIB, FileZenConfig


def test_defaults() -> None:
    config = FileZenConfig()

    assert config.user_agent == "FileZenRA"
    assert config.chunk_size == 50 * MIB
    assert config.delivery_max_size == 200 * MIB
    assert config.verify_tls is True


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"timeout": 0}, "timeout"),
        ({"chunk_size": 0}, "chunk_size"),
        ({"delivery_max_size": -1}, "delivery_max_size"),
        ({"user_agent": ""}, "user_agent"),
    ],
)
def test_invalid_values(kwargs: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        FileZenConfig(**kwargs)  # type: ignore[arg-type]
