"""Cross-module ledger of registered and referenced modules.

The manifest is the only state shared between modules.  It is append-only;
a host that processes modules in parallel can share one instance because
appends are serialized with a lock.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ModuleRecord:
    file_name: str
    module_name: str


class ModulesManifest:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._modules: Dict[str, str] = {}
        self._referenced: Dict[str, List[str]] = {}

    # ------------------------------------------------------------------
    # appends
    # ------------------------------------------------------------------
    def add_module(self, file_name: str, module_name: str) -> None:
        with self._lock:
            self._modules[file_name] = module_name
            self._referenced.setdefault(file_name, [])

    def add_referenced_module(self, file_name: str, namespace: str) -> None:
        with self._lock:
            referenced = self._referenced.setdefault(file_name, [])
            if namespace not in referenced:
                referenced.append(namespace)

    def record(self, file_name: str, module_name: str, referenced: Iterable[str]) -> None:
        """Append everything known about one module in a single step."""

        with self._lock:
            self._modules[file_name] = module_name
            known = self._referenced.setdefault(file_name, [])
            for namespace in referenced:
                if namespace not in known:
                    known.append(namespace)

    def add_manifest(self, other: "ModulesManifest") -> None:
        for record in other.modules:
            self.record(record.file_name, record.module_name, other.referenced(record.file_name))

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    @property
    def modules(self) -> List[ModuleRecord]:
        with self._lock:
            return [ModuleRecord(file_name, name) for file_name, name in self._modules.items()]

    @property
    def file_names(self) -> List[str]:
        with self._lock:
            return list(self._modules)

    def referenced(self, file_name: str) -> List[str]:
        with self._lock:
            return list(self._referenced.get(file_name, ()))

    def file_name_for(self, module_name: str) -> Optional[str]:
        with self._lock:
            for file_name, name in self._modules.items():
                if name == module_name:
                    return file_name
        return None

    def as_json(self) -> Dict[str, object]:
        with self._lock:
            return {
                "modules": [
                    {
                        "file_name": file_name,
                        "module_name": name,
                        "referenced": list(self._referenced.get(file_name, ())),
                    }
                    for file_name, name in self._modules.items()
                ]
            }

    def write(self, path: Path) -> None:
        path.write_text(json.dumps(self.as_json(), indent=2) + "\n", encoding="utf-8")

    def __len__(self) -> int:
        with self._lock:
            return len(self._modules)


__all__ = ["ModuleRecord", "ModulesManifest"]
