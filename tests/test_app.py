from app import clear_cache
from config.settings import settings


def test_clear_cache_removes_file(tmp_path, monkeypatch, capsys):
    path = tmp_path / "memes_metadata.json"
    path.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(settings, "CACHE_PATH", path)

    clear_cache.main()
    assert not path.exists()
    assert "cleared" in capsys.readouterr().out

    clear_cache.main()
    assert "nothing to clear" in capsys.readouterr().out


def test_env_lists_are_parsed(monkeypatch):
    from config.settings import _env_list

    monkeypatch.setenv("MEMES_TEST_LIST", " onchain, ,simplehash ,")
    assert _env_list("MEMES_TEST_LIST", "") == ("onchain", "simplehash")
    assert _env_list("MEMES_TEST_MISSING", "a,b") == ("a", "b")
