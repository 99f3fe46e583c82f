from typing import Dict, Iterable, List, Optional


class ListStore:
    """
    Rows of one list screen, keyed by id.

    Each screen owns its own store; nothing is shared between screens.
    """

    def __init__(self, rows: Optional[Iterable[Dict]] = None, key: str = 'id'):
        self.key = key
        self._rows: List[Dict] = []
        self.total_count = 0
        if rows is not None:
            self.replace_all(rows)

    def __len__(self):
        return len(self._rows)

    def __iter__(self):
        return iter(self._rows)

    @property
    def items(self) -> List[Dict]:
        return list(self._rows)

    def get(self, pk) -> Optional[Dict]:
        for row in self._rows:
            if row.get(self.key) == pk:
                return row
        return None

    def replace_all(self, rows: Iterable[Dict], total_count: Optional[int] = None):
        self._rows = [dict(row) for row in rows]
        self.total_count = total_count if total_count is not None else len(self._rows)

    def append(self, row: Dict):
        self._rows.append(dict(row))
        self.total_count += 1

    def merge(self, row: Dict) -> bool:
        """Update the row with the same id in place; False if it is not loaded"""
        for index, existing in enumerate(self._rows):
            if existing.get(self.key) == row.get(self.key):
                self._rows[index] = {**existing, **row}
                return True
        return False

    def remove(self, pk) -> bool:
        for index, existing in enumerate(self._rows):
            if existing.get(self.key) == pk:
                del self._rows[index]
                self.total_count = max(0, self.total_count - 1)
                return True
        return False

    def clear(self):
        self._rows = []
        self.total_count = 0
