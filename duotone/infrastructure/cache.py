from __future__ import annotations

from typing import Dict, Hashable, Optional


class AssetPathCache:
    """Maps ``base/name`` keys to the resolved asset path.

    Entries live until :meth:`clear` is called; there is no expiry. Only
    successful resolutions are stored.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    @staticmethod
    def key(base_path: str, image_name: str) -> str:
        return f"{base_path}/{image_name}"

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def put(self, key: str, path: str) -> None:
        self._entries[key] = path

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class RenderCache:
    """Last successful PNG per render key, served when that same source later fails.

    The oldest entry is evicted once ``limit`` keys are held.
    """

    def __init__(self, limit: int = 16) -> None:
        self._limit = limit
        self._entries: Dict[Hashable, bytes] = {}

    def get(self, key: Hashable) -> Optional[bytes]:
        return self._entries.get(key)

    def put(self, key: Hashable, data: bytes) -> None:
        self._entries.pop(key, None)
        if len(self._entries) >= self._limit:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)
        self._entries[key] = data

    def __len__(self) -> int:
        return len(self._entries)
