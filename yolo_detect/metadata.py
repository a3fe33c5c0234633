from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

from .classes import ClassCatalog


def load_class_names(metadata_path: Union[str, Path]) -> ClassCatalog:
    """
    Load class names from the lightweight ``metadata.yaml`` written next to
    exported YOLO models:

        names:
          0: person
          1: bicycle
          ...

    Only the ``names:`` block is read, so no YAML parser is needed. Ids must
    be contiguous from 0.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            # a new top-level key ends the block
            if not raw.startswith((" ", "\t")):
                break

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0")

    return ClassCatalog([names[i] for i in expected])
