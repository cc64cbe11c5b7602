import pytest

from gotenberg.env import EnvironmentVariableError, int_env, string_env


def test_string_env_missing(monkeypatch):
    monkeypatch.delenv("NON_EXISTING", raising=False)
    with pytest.raises(EnvironmentVariableError, match="does not exist"):
        string_env("NON_EXISTING")


def test_string_env_empty(monkeypatch):
    monkeypatch.setenv("EMPTY_STRING", "")
    with pytest.raises(EnvironmentVariableError, match="is empty"):
        string_env("EMPTY_STRING")


def test_string_env_success(monkeypatch):
    monkeypatch.setenv("EXISTING_STRING_VALUE", "foo")
    assert string_env("EXISTING_STRING_VALUE") == "foo"


@pytest.mark.parametrize("key,value", [("EMPTY_INT", ""), ("NON_INTEGER", "foo")])
def test_int_env_errors(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(EnvironmentVariableError):
        int_env(key)


def test_int_env_success(monkeypatch):
    monkeypatch.setenv("EXISTING_INT_VALUE", "123")
    assert int_env("EXISTING_INT_VALUE") == 123