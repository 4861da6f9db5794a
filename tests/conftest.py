import pytest


@pytest.fixture(autouse=True)
def agentshell_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv("AGENTSHELL_HOME", str(home))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return home
