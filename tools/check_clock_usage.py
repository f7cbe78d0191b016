from __future__ import annotations

"""Fail-fast grep for stray wall-clock reads.

Only clock.py may read the host clock; everything else goes through
``clock.now_utc_iso()`` / ``clock.resolve_now(now_iso)`` so services stay
deterministic under test.

Run:
  python -m tools.check_clock_usage [ROOT]

Exit code:
  0 - clean
  1 - stray clock read found
"""

import os
import re
import sys
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional

_CALLS = (
    r"date\.today",
    r"datetime\.now",
    r"datetime\.utcnow",
    r"datetime\.today",
    r"time\.time",
    r"time\.time_ns",
    r"time\.monotonic",
)
CLOCK_READ = re.compile(r"\b(?:" + "|".join(_CALLS) + r")\s*\(")

SKIP_DIRS = frozenset({".git", "__pycache__", ".venv", "venv", ".pytest_cache", "build", "dist"})

# clock.py is the sanctioned reader; this file names the patterns.
ALLOWED_FILES = frozenset({"clock.py", "check_clock_usage.py"})


class Hit(NamedTuple):
    path: Path
    line_no: int
    line: str
    call: str


def iter_py_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for fn in sorted(filenames):
            if fn.endswith(".py") and fn not in ALLOWED_FILES:
                yield Path(dirpath) / fn


def find_hits(root: Path) -> List[Hit]:
    hits: List[Hit] = []
    for fp in iter_py_files(root):
        for i, line in enumerate(fp.read_text(encoding="utf-8").splitlines(), start=1):
            m = CLOCK_READ.search(line)
            if m:
                hits.append(Hit(fp.relative_to(root), i, line.strip(), m.group(0)))
    return hits


def main(root: Optional[Path] = None) -> int:
    root = Path(root) if root is not None else Path(__file__).resolve().parents[1]
    hits = find_hits(root)
    if not hits:
        print(f"[OK] no stray clock reads under {root}")
        return 0
    print(f"[FAIL] {len(hits)} stray clock read(s):")
    for hit in hits:
        print(f"- {hit.path}:{hit.line_no}: {hit.line}")
    print("Route these through clock.now_utc_iso() / clock.resolve_now().")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
