"""
Translation Cache - process-wide mapping of source text to translated text.
Keys are (trimmed source text, target language) so one run can serve several
target languages without mixing results.
"""

import json
import logging
import os
import threading
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


def make_key(text: str, target_lang: str) -> CacheKey:
    return (text.strip(), str(target_lang or "").strip().lower())


class TranslationCache:
    """Thread-safe translation cache with optional JSON persistence."""

    VERSION = "1.0"

    def __init__(self, cache_path: Optional[str] = None):
        self.cache_path = cache_path
        self._entries: Dict[CacheKey, str] = {}
        self._hits = 0
        self._misses = 0
        self.load_error: Optional[str] = None
        self._lock = threading.Lock()

    def get(self, text: str, target_lang: str) -> Optional[str]:
        key = make_key(text, target_lang)
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def put(self, text: str, target_lang: str, translated: str) -> None:
        """Store a translation. Concurrent writers for the same key: last one wins."""
        key = make_key(text, target_lang)
        with self._lock:
            self._entries[key] = translated

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return make_key(*key) in self._entries

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def load(self) -> bool:
        """Merge entries from cache_path. Keeps in-memory entries on failure."""
        self.load_error = None
        if not self.cache_path or not os.path.exists(self.cache_path):
            return False
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
                raise ValueError("expected an object with an 'entries' list")
        except (OSError, ValueError) as e:
            self.load_error = f"Failed to load cache {self.cache_path}: {e}"
            logger.warning(f"[Cache] {self.load_error}")
            return False

        loaded: Dict[CacheKey, str] = {}
        for item in data["entries"]:
            if not isinstance(item, dict):
                continue
            src = item.get("src")
            dst = item.get("dst")
            if not isinstance(src, str) or not isinstance(dst, str):
                continue
            loaded[make_key(src, str(item.get("lang") or ""))] = dst

        with self._lock:
            for key, value in loaded.items():
                self._entries.setdefault(key, value)
        logger.debug(f"[Cache] Loaded {len(loaded)} entries from {self.cache_path}")
        return True

    def save(self) -> bool:
        if not self.cache_path:
            return False
        with self._lock:
            data = {
                "version": self.VERSION,
                "entries": [
                    {"src": src, "lang": lang, "dst": dst}
                    for (src, lang), dst in sorted(self._entries.items())
                ],
            }
        # File I/O outside the lock
        tmp_path = self.cache_path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.cache_path)
        except OSError as e:
            logger.warning(f"[Cache] Failed to save {self.cache_path}: {e}")
            return False
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            self._hits = 0
            self._misses = 0
