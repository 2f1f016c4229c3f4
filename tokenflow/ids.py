from typing import Dict


class IdMapper:
    """Dense, first-seen integer ids for native diagram ids.

    Ids start at 1 and are never reused or freed; one mapper lives for one
    compilation.
    """

    def __init__(self):
        self._ids: Dict[str, int] = {}

    def intern(self, native_id: str) -> int:
        if native_id not in self._ids:
            self._ids[native_id] = len(self._ids) + 1
        return self._ids[native_id]

    def reverse(self) -> Dict[int, str]:
        return {value: key for key, value in self._ids.items()}

    def __contains__(self, native_id: object) -> bool:
        return native_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
