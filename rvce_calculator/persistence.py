# rvce_calculator/persistence.py

import copy
import json
from pathlib import Path
from typing import Any, Dict, Iterable

from rvce_calculator.config import CONFIG
from rvce_calculator.curriculum import CHEMISTRY, PHYSICS
from rvce_calculator.logger import get_logger

log = get_logger("persistence")

# Bucket names, stored as "<namespace>_<key>"
FORM_DATA = "form_data"
SGPA_VALUES = "sgpa_values"
FINAL_CGPA_GRADES = "final_cgpa_grades"
CURRENT_MODE = "current_mode"
CURRENT_CYCLE = "current_cycle"

_MISSING = object()

STORAGE_KEYS = (FORM_DATA, SGPA_VALUES, FINAL_CGPA_GRADES, CURRENT_MODE, CURRENT_CYCLE)

DEFAULTS: Dict[str, Any] = {
    FORM_DATA: {},
    SGPA_VALUES: {PHYSICS: "", CHEMISTRY: ""},
    FINAL_CGPA_GRADES: {PHYSICS: {}, CHEMISTRY: {}},
    CURRENT_MODE: "",
    CURRENT_CYCLE: "",
}


# ------------------------
# Key/value backends
# ------------------------
class MemoryStore:
    """Dict-backed store, string values only (like browser localStorage)."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStore:
    """One <key>.json file per entry under a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ------------------------
# Adapter
# ------------------------
class PersistenceAdapter:
    """
    save / load / clear of JSON values under namespaced keys.
    Storage problems are logged and never raised: a failed load gives back
    the default, a failed save or clear is skipped.
    """

    def __init__(self, store=None, namespace: str | None = None):
        self.store = store if store is not None else FileStore(CONFIG.STORAGE_DIR)
        self.namespace = namespace if namespace is not None else CONFIG.STORAGE_NAMESPACE

    def key(self, name: str) -> str:
        return f"{self.namespace}_{name}"

    def save(self, name: str, value: Any) -> bool:
        try:
            self.store.set_item(self.key(name), json.dumps(value))
        except (OSError, TypeError, ValueError) as e:
            log.warning(f"Failed to save {self.key(name)}: {e}")
            return False
        return True

    def load(self, name: str, default: Any = _MISSING) -> Any:
        if default is _MISSING:
            default = DEFAULTS.get(name)
        try:
            stored = self.store.get_item(self.key(name))
            if not stored:
                return copy.deepcopy(default)
            value = json.loads(stored)
        except (OSError, ValueError) as e:
            log.warning(f"Failed to load {self.key(name)}: {e}")
            return copy.deepcopy(default)

        # a bucket of the wrong shape is as good as corrupt
        if isinstance(default, (dict, str)) and not isinstance(value, type(default)):
            log.warning(f"Ignoring {self.key(name)}: expected {type(default).__name__}")
            return copy.deepcopy(default)
        return value

    def clear(self, names: str | Iterable[str]) -> None:
        if isinstance(names, str):
            names = [names]
        for name in names:
            try:
                self.store.remove_item(self.key(name))
            except OSError as e:
                log.warning(f"Failed to clear {self.key(name)}: {e}")

    def clear_all(self) -> None:
        self.clear(STORAGE_KEYS)

    def load_all(self) -> Dict[str, Any]:
        return {name: self.load(name) for name in STORAGE_KEYS}
