from __future__ import annotations

from typing import Dict, Tuple


def load_class_names(metadata_path: str) -> Tuple[str, ...]:
    """
    Load the ordered class vocabulary from a lightweight `metadata.yaml`:

        names:
          0: person
          1: bicycle
          ...

    Ids must run contiguously from 0 because position ``i`` in the result is
    matched against class row ``i`` of the model output. This function
    intentionally avoids adding a PyYAML dependency.
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

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                # A new top-level key ends the names block.
                if not raw.startswith((" ", "\t")):
                    in_names = False
                continue
            names[int(left)] = right

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0 (got {sorted(names)})")
    return tuple(names[i] for i in expected)
