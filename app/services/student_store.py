import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from fastapi.concurrency import run_in_threadpool

from app.services.errors import StorageError

Collection = List[Dict[str, Any]]


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


class StudentStore:
    """Whole-document JSON store for the student collection.

    ``load`` returns a fresh snapshot owned by the caller and ``save``
    overwrites the file with the snapshot it is given. There is no
    partial access and no temp-file rename; a failed write leaves
    whatever the OS left behind.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        # Held by mutating handlers across load-mutate-save
        self.lock = asyncio.Lock()

    def load(self) -> Collection:
        """Read and parse the full collection."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f, parse_constant=_reject_constant)
        except FileNotFoundError as e:
            raise StorageError(f"Students file not found: {self.path}") from e
        except (json.JSONDecodeError, ValueError) as e:
            raise StorageError(f"Students file is not valid JSON: {self.path}") from e
        except OSError as e:
            raise StorageError(f"Could not read students file: {self.path}") from e

        if not isinstance(data, list):
            raise StorageError(
                f"Students file must contain a JSON array, got {type(data).__name__}"
            )
        return data

    def save(self, students: Collection) -> None:
        """Serialize the full collection and overwrite the file."""
        try:
            text = json.dumps(students, ensure_ascii=False, indent=2, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise StorageError("Students collection is not JSON serializable") from e

        try:
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise StorageError(f"Could not write students file: {self.path}") from e

    async def read(self) -> Collection:
        return await run_in_threadpool(self.load)

    async def write(self, students: Collection) -> None:
        await run_in_threadpool(self.save, students)


def create_store(path: Union[str, Path], base_dir: Optional[Path] = None) -> StudentStore:
    """Build a store, resolving a relative ``path`` against ``base_dir``."""
    path = Path(path)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return StudentStore(path)
