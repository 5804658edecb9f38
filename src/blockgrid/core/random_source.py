# どこで: `src/blockgrid/core/random_source.py`。
# 何を: パッキング・着色が使う乱数源のインタフェースと numpy 実装を提供する。
# なぜ: 乱数を暗黙のグローバルから注入可能な依存にし、seed で再現できるようにするため。

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

import numpy as np

from blockgrid.core.errors import InvalidArgument

T = TypeVar("T")


class RandomSource(Protocol):
    """一様乱数と有限集合からの一様選択を提供する乱数源。"""

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        """[low, high) の一様乱数を返す。"""
        ...

    def choice(self, items: Sequence[T]) -> T:
        """items から 1 要素を一様に選んで返す。"""
        ...


class NumpyRandomSource:
    """`numpy.random.Generator` を用いた RandomSource 実装。

    Parameters
    ----------
    seed : int or None, optional
        乱数 seed。None の場合は OS エントロピーから初期化する。
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        return float(self._rng.uniform(float(low), float(high)))

    def choice(self, items: Sequence[T]) -> T:
        # np.random.Generator.choice はタプル列を ndarray 化するため、添字で引く。
        n = len(items)
        if n == 0:
            raise InvalidArgument("空の候補列からは選択できない")
        return items[int(self._rng.integers(n))]


__all__ = ["NumpyRandomSource", "RandomSource"]
