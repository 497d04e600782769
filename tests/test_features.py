import logging

import pytest

from bisync_suffix import Features
from bisync_suffix.features import ENV_VAR


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("async", {"async"}),
        ("blocking", {"blocking"}),
        (" async , blocking ", {"async", "blocking"}),
        ("async,,", {"async"}),
        ("", set()),
    ],
)
def test_from_env(value: str, expected: set) -> None:
    assert Features.from_env({ENV_VAR: value}).enabled == expected


def test_from_env_unset() -> None:
    assert Features.from_env({}) == Features()


def test_from_env_defaults_to_os_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENV_VAR, "blocking")
    assert Features.from_env() == Features.of("blocking")


def test_unknown_feature_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="bisync_suffix.features"):
        features = Features.of("async", "turbo")

    assert "turbo" in features
    assert "turbo" in caplog.text


def test_set_behaviour() -> None:
    features = Features.of("blocking", "async")
    assert Features.ASYNC in features
    assert "other" not in features
    assert list(features) == ["async", "blocking"]
    assert str(features) == "async, blocking"
    assert str(Features()) == "(none)"
