import json
import threading
from pathlib import Path

import pytest

from subtitle_flow.core.cache import TranslationCache, make_key


@pytest.mark.unit
def test_translation_cache_keys_on_trimmed_text_and_language():
    cache = TranslationCache()
    cache.put("  Hello ", "fr", "Bonjour")
    assert cache.get("Hello", "fr") == "Bonjour"
    assert cache.get("Hello", "de") is None
    assert ("Hello", "FR") in cache
    assert make_key(" a ", " FR ") == ("a", "fr")


@pytest.mark.unit
def test_translation_cache_last_write_wins():
    cache = TranslationCache()
    cache.put("a", "ru", "A1")
    cache.put("a", "ru", "A2")
    assert cache.get("a", "ru") == "A2"
    assert len(cache) == 1


@pytest.mark.unit
def test_translation_cache_stats():
    cache = TranslationCache()
    cache.put("a", "ru", "A")
    cache.get("a", "ru")
    cache.get("b", "ru")
    stats = cache.get_stats()
    assert stats == {"entries": 1, "hits": 1, "misses": 1}
    cache.clear()
    assert cache.get_stats()["entries"] == 0


@pytest.mark.unit
def test_translation_cache_concurrent_puts():
    cache = TranslationCache()

    def writer(n):
        for i in range(200):
            cache.put(f"line {i}", "ru", f"{n}:{i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cache) == 200


@pytest.mark.unit
def test_translation_cache_save_and_load(tmp_path: Path):
    cache_path = tmp_path / "cache.json"
    cache = TranslationCache(str(cache_path))
    cache.put("a", "ru", "A")
    cache.put("b", "fr", "B")
    assert cache.save() is True

    data = json.loads(cache_path.read_text(encoding="utf-8"))
    assert data["version"] == TranslationCache.VERSION
    assert len(data["entries"]) == 2

    new_cache = TranslationCache(str(cache_path))
    assert new_cache.load() is True
    assert new_cache.get("b", "fr") == "B"


@pytest.mark.unit
def test_translation_cache_load_missing_file(tmp_path: Path):
    cache = TranslationCache(str(tmp_path / "missing.json"))
    assert cache.load() is False
    assert TranslationCache().save() is False


@pytest.mark.unit
def test_translation_cache_load_corrupt_keeps_entries(tmp_path: Path):
    cache_path = tmp_path / "cache.json"
    cache = TranslationCache(str(cache_path))
    cache.put("a", "ru", "A")
    cache_path.write_text("{oops}", encoding="utf-8")

    assert cache.load() is False
    assert cache.get("a", "ru") == "A"


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    ['{"entries": null}', '{"entries": 5}', "[1, 2]", '"text"', "\xff"],
)
def test_translation_cache_load_wrong_shape_is_rejected(tmp_path: Path, content):
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(content, encoding="latin-1")
    cache = TranslationCache(str(cache_path))
    cache.put("a", "ru", "A")

    assert cache.load() is False
    assert "Failed to load cache" in cache.load_error
    assert cache.get("a", "ru") == "A"


@pytest.mark.unit
def test_translation_cache_load_skips_malformed_entries(tmp_path: Path):
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(
        json.dumps({"entries": ["x", None, {"src": "a", "dst": 1}, {"src": "b", "lang": "fr", "dst": "B"}]}),
        encoding="utf-8",
    )
    cache = TranslationCache(str(cache_path))
    assert cache.load() is True
    assert cache.load_error is None
    assert len(cache) == 1
    assert cache.get("b", "fr") == "B"
