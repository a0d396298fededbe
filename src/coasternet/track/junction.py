"""
Junctions - Connection ordering at nodes with more than two connections.

Defines:
- JunctionOrder: priority-ordered connection sequence with switch operations
- sort_junctions: deterministic angular ordering of junction exits
- JunctionLabel: ordinal label shown at each junction exit
"""

from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, List, Sequence, Tuple, TypeVar
import numpy as np

from coasternet.geometry.vector import (
    angle_difference,
    look_at_yaw,
    normalize,
)
from coasternet.track.exceptions import ConnectionNotFoundError

T = TypeVar("T")

# Two minimum angles closer than this are considered equal during base selection
BASE_ANGLE_TOLERANCE = 1e-10

# Relative junction yaws are single precision, wrapped by whole turns
YAW_TURN = np.float32(360.0)


class JunctionOrder(Generic[T]):
    """Ordered sequence of connections, by priority.

    Index 0 and 1 hold the active pair of a junction. Items are
    matched by identity.
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: List[T] = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __contains__(self, item: object) -> bool:
        return any(existing is item for existing in self._items)

    def as_tuple(self) -> Tuple[T, ...]:
        return tuple(self._items)

    def index(self, item: T) -> int:
        """Get the position of an item.

        Raises:
            ConnectionNotFoundError: If the item is not in this sequence
        """
        for i, existing in enumerate(self._items):
            if existing is item:
                return i
        raise ConnectionNotFoundError(f"{item!r} is not part of this junction")

    def append(self, item: T) -> None:
        self._items.append(item)

    def remove(self, item: T) -> None:
        del self._items[self.index(item)]

    def move_to_back(self, item: T) -> bool:
        """Move an item to the end of the sequence.

        Returns:
            True if the order changed
        """
        if len(self._items) <= 1 or self._items[-1] is item:
            return False
        i = self.index(item)
        self._items.append(self._items.pop(i))
        return True

    def move_to_front(self, item: T) -> bool:
        """Move an item to index 0.

        An item at index 1 swaps places with index 0, so the previously
        active item becomes the alternate. Any other item is inserted at
        the front, shifting the items before it back by one.

        Returns:
            True if the order changed
        """
        i = self.index(item)
        if i == 0:
            return False
        if i == 1:
            self.swap_front()
        else:
            self._items.insert(0, self._items.pop(i))
        return True

    def swap_front(self) -> None:
        """Swap the items at index 0 and 1."""
        if len(self._items) < 2:
            raise RuntimeError("Cannot swap junction with less than 2 connections")
        self._items[0], self._items[1] = self._items[1], self._items[0]

    def reorder(self, items: Sequence[T]) -> bool:
        """Replace the order with a permutation of the current items.

        Returns:
            True if the order changed

        Raises:
            ValueError: If items is not a permutation of this sequence
        """
        if (len(items) != len(self._items)
                or len({id(item) for item in items}) != len(items)
                or any(item not in self for item in items)):
            raise ValueError("reorder requires a permutation of the current items")
        if all(a is b for a, b in zip(items, self._items)):
            return False
        self._items = list(items)
        return True


def _yaw32(origin: np.ndarray, target: np.ndarray) -> np.float32:
    delta = np.asarray(target, dtype=float) - origin
    return np.float32(look_at_yaw(delta[0], delta[2]))


def _compare(a: float, b: float) -> int:
    a, b = float(a), float(b)
    return int(a > b) - int(a < b)


def sort_junctions(origin: np.ndarray, targets: Sequence[np.ndarray]) -> List[int]:
    """Order junction exits by angle around a node.

    The base is the exit whose smallest angle to any other exit is
    largest. Near-equal candidates (symmetric layouts) are decided on
    the raw direction components, X then Z then Y, largest wins. The
    remaining exits follow by yaw relative to the base, in [0, 360).

    Args:
        origin: Position of the junction node
        targets: Positions of the connected neighbours

    Returns:
        Indices into targets, base first
    """
    if len(targets) <= 2:
        return list(range(len(targets)))

    vectors = [normalize(np.asarray(t, dtype=float) - origin) for t in targets]

    base_index = 0
    base_vector = vectors[0]
    max_angle_diff = 0.0
    for i, base in enumerate(vectors):
        min_angle = 360.0
        for j, other in enumerate(vectors):
            if i != j:
                min_angle = min(min_angle, angle_difference(base, other))

        if abs(min_angle - max_angle_diff) <= BASE_ANGLE_TOLERANCE:
            comp = _compare(base[0], base_vector[0])
            if comp == 0:
                comp = _compare(base[2], base_vector[2])
                if comp == 0:
                    comp = _compare(base[1], base_vector[1])
        else:
            comp = _compare(min_angle, max_angle_diff)

        if comp > 0:
            max_angle_diff = min_angle
            base_index = i
            base_vector = base

    base_yaw = _yaw32(origin, targets[base_index])

    def relative_yaw(index: int) -> np.float32:
        yaw = _yaw32(origin, targets[index]) - base_yaw
        while yaw < 0.0:
            yaw += YAW_TURN
        return yaw

    others = [i for i in range(len(targets)) if i != base_index]
    others.sort(key=relative_yaw)
    return [base_index] + others


@dataclass(eq=False)
class JunctionLabel:
    """Ordinal label displayed near a junction exit."""
    text: str
    position: np.ndarray
    active: bool = False

    @staticmethod
    def format_text(index: int, active: bool) -> str:
        """Label text for the exit at a sorted index (0-based)."""
        text = str(index + 1)
        if active:
            text += "#"
        return text
