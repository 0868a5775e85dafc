# infrastructure/persistence.py

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    if parent:
        os.makedirs(parent, exist_ok=True)


def _atomic_write_bytes(path: str, data: bytes) -> None:
    """
    Write to a temp file next to `path`, fsync, then os.replace over it.
    Readers see either the old file or the new one, never a torn write.
    """
    _ensure_parent_dir(path)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=os.path.dirname(os.path.abspath(path)))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def to_jsonable(x: Any) -> Any:
    """
    Reduce order-book objects (dataclass orders/events, enums, containers)
    to JSON primitives. Ints stay ints: amounts and prices exceed 2**53
    and must not pass through float.
    """
    if x is None or isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, Enum):
        return x.value
    if is_dataclass(x) and not isinstance(x, type):
        return to_jsonable(asdict(x))
    if isinstance(x, dict):
        return {str(k): to_jsonable(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [to_jsonable(v) for v in x]
    raise TypeError(f"cannot serialise {type(x).__name__}")


def atomic_write_json(path: str, obj: Dict[str, Any]) -> None:
    payload = json.dumps(to_jsonable(obj), ensure_ascii=False, indent=2, sort_keys=True)
    _atomic_write_bytes(path, payload.encode("utf-8"))


def read_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def atomic_write_jsonl(path: str, records: Iterable[Dict[str, Any]]) -> None:
    lines = [json.dumps(to_jsonable(r), ensure_ascii=False, separators=(",", ":")) for r in records]
    data = "".join(line + "\n" for line in lines)
    _atomic_write_bytes(path, data.encode("utf-8"))


def read_jsonl(path: str) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                out.append(json.loads(line))
    return out
