"""Item-set generation and ordering for packing experiments."""

import random
from typing import Callable

from binpack2d.config import ItemSpec


def generate_items(
    count: int = 100,
    seed: int | None = None,
    min_side: int = 10,
    max_side: int = 200,
) -> list[ItemSpec]:
    """
    Generate random item sizes for experimentation.

    Args:
        count: Number of items to generate
        seed: Random seed for reproducibility (default: None)
        min_side: Smallest side length
        max_side: Largest side length

    Returns:
        List of ItemSpec objects, quantity 1 each
    """
    rng = random.Random(seed)
    return [
        ItemSpec(width=rng.randint(min_side, max_side), height=rng.randint(min_side, max_side))
        for _ in range(count)
    ]


def as_given(items: list[ItemSpec]) -> list[ItemSpec]:
    """Keep the input order."""
    return list(items)


def random_order(items: list[ItemSpec], seed: int | None = 0) -> list[ItemSpec]:
    """
    Return items in random order.

    Args:
        items: List of items
        seed: Random seed (default 0 so orderings are repeatable)

    Returns:
        Shuffled copy of items
    """
    shuffled = items.copy()
    random.Random(seed).shuffle(shuffled)
    return shuffled


def area_desc_order(items: list[ItemSpec]) -> list[ItemSpec]:
    """Sort items by area (largest first)."""
    return sorted(items, key=lambda i: i.width * i.height, reverse=True)


def long_side_desc_order(items: list[ItemSpec]) -> list[ItemSpec]:
    """Sort items by their longer side (largest first)."""
    return sorted(items, key=lambda i: max(i.width, i.height), reverse=True)


# Map of ordering strategy names to functions
ORDERING_STRATEGIES: dict[str, Callable[[list[ItemSpec]], list[ItemSpec]]] = {
    "as_given": as_given,
    "random": random_order,
    "area_desc": area_desc_order,
    "long_side_desc": long_side_desc_order,
}


def get_ordering_strategy(name: str) -> Callable[[list[ItemSpec]], list[ItemSpec]]:
    """
    Get an ordering strategy function by name.

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in ORDERING_STRATEGIES:
        raise ValueError(
            f"Unknown ordering strategy: {name}. "
            f"Available: {list(ORDERING_STRATEGIES.keys())}"
        )
    return ORDERING_STRATEGIES[name]
