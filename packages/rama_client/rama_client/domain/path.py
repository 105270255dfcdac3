"""Navigation paths for PState queries.

A path is an ordered list of steps. A step is either an implicit navigator
(a key, number, boolean or encoded value, appended as-is) or an explicit
navigator, a list whose first element is the navigator name and whose remaining
elements are its arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .values import encode_function

Step = Any


def _sub_path_steps(sub_path: Path | Sequence[Step]) -> list[Step]:
    if isinstance(sub_path, Path):
        return sub_path.steps
    return list(sub_path)


class Path:
    """Fluent accumulator of navigation steps.

    Every navigator method appends one step and returns the path itself, so
    calls can be chained::

        Path().key("a").all().filter_pred_fn("Ops.IS_EVEN")
    """

    def __init__(self, steps: Iterable[Step] | None = None) -> None:
        self._steps: list[Step] = list(steps) if steps is not None else []

    @property
    def steps(self) -> list[Step]:
        """Copy of the accumulated steps."""
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            return self._steps == other._steps
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._steps!r})"

    def _append(self, step: Step) -> Path:
        self._steps.append(step)
        return self

    # Implicit navigators

    def nav(self, value: Step) -> Path:
        """Append an implicit navigator as-is."""
        return self._append(value)

    def key(self, name: str) -> Path:
        """Append a map key navigator."""
        return self.nav(str(name))

    def filter_pred_fn(self, function_name: str) -> Path:
        """Append an implicit filter on a named function, e.g. ``"Ops.IS_EVEN"``."""
        return self.nav(encode_function(function_name))

    # Explicit navigators

    def explicit(self, op: str, *args: Step) -> Path:
        """Append an explicit navigator ``[op, *args]``."""
        return self._append([op, *args])

    def all(self) -> Path:
        return self.explicit("all")

    def first(self) -> Path:
        return self.explicit("first")

    def last(self) -> Path:
        return self.explicit("last")

    def map_vals(self) -> Path:
        return self.explicit("mapVals")

    def map_keys(self) -> Path:
        return self.explicit("mapKeys")

    def must(self, *keys: Step) -> Path:
        """Append ``["must", key1, key2, ...]``."""
        return self.explicit("must", *keys)

    def filter_pred(self, function: str) -> Path:
        """Append ``["filterPred", function]`` for an encoded function reference."""
        return self.explicit("filterPred", function)

    def view(self, function: str, *args: Step) -> Path:
        return self.explicit("view", function, *args)

    def term_val(self, value: Step) -> Path:
        return self.explicit("termVal", value)

    def sorted_map_range(self, start: Step, end: Step) -> Path:
        return self.explicit("sortedMapRange", start, end)

    def filter_selected(self, sub_path: Path | Sequence[Step]) -> Path:
        """Append ``["filterSelected", *sub_path_steps]``.

        The sub-path's steps become the navigator's arguments. Only the
        immediate sub-path is spliced; its own explicit steps stay lists.
        """
        return self.explicit("filterSelected", *_sub_path_steps(sub_path))

    def subselect(self, sub_path: Path | Sequence[Step]) -> Path:
        """Append ``["subselect", *sub_path_steps]``, spliced like ``filter_selected``."""
        return self.explicit("subselect", *_sub_path_steps(sub_path))
