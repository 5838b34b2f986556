from app.common import mlflow_control
from app.common.mlflow_control import mlflow_context, mlflow_safe


def test_mlflow_safe_is_noop_in_test_env():
    calls = []

    assert mlflow_safe(lambda: calls.append(1)) is None
    assert calls == []


def test_mlflow_safe_passes_arguments_through(monkeypatch):
    monkeypatch.setattr(mlflow_control, "_mlflow_disabled", lambda: False)

    def set_tag(key, value, **kwargs):
        return (key, value, kwargs)

    result = mlflow_safe(set_tag, "model", "gemini", synchronous=False)

    assert result == ("model", "gemini", {"synchronous": False})


def test_mlflow_safe_suppresses_tracking_failures(monkeypatch):
    monkeypatch.setattr(mlflow_control, "_mlflow_disabled", lambda: False)

    def broken(*_args):
        raise ConnectionError("tracking server down")

    assert mlflow_safe(broken, "latency_sec", 1.2) is None


def test_mlflow_context_yields_none_in_test_env():
    with mlflow_context("analysis") as run:
        assert run is None
