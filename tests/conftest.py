from __future__ import annotations

import sys
from pathlib import Path


def _ensure_paths() -> None:
    # The repo root holds `yolo_detect`, this directory holds `_helpers`; some pytest
    # import modes put neither on sys.path when the package is not installed.
    here = Path(__file__).resolve().parent
    for path in (here.parent, here):
        path_str = str(path)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_paths()
