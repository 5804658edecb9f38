"""
どこで: `src/blockgrid/core/shape_policy.py`。
何を: 候補形状 (w, h) の抽選ポリシー（プール / 軸独立）と名前付きレジストリを提供する。
なぜ: パスごとに形状分布を差し替えられるようにし、設定ファイルから名前で参照するため。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import ItemsView, Iterable
from dataclasses import dataclass

from blockgrid.core.errors import InvalidArgument
from blockgrid.core.placement import Dims, _require_int
from blockgrid.core.random_source import RandomSource


class ShapePolicy(ABC):
    """1 回の配置試行ごとに候補寸法を 1 つ引くポリシー。

    サブクラスは `draw` と `candidates` を実装する。`name` はログ・エラー表示用で、
    上書きしなければ `"custom"` になる。
    """

    name: str = "custom"

    @abstractmethod
    def draw(self, rng: RandomSource) -> Dims:
        """rng を用いて候補寸法を 1 つ引く。"""

    @abstractmethod
    def candidates(self) -> tuple[Dims, ...]:
        """このポリシーが返し得る寸法を重複なしで返す。"""

    def validate(self) -> None:
        """返し得る寸法がすべて正であることを確認する。

        Raises
        ------
        InvalidArgument
            候補が空、または非正の寸法を含む場合。
        """
        dims = self.candidates()
        if not dims:
            raise InvalidArgument(f"形状ポリシー {self.name!r} の候補が空")
        for d in dims:
            if d.w < 1 or d.h < 1:
                raise InvalidArgument(f"形状ポリシー {self.name!r} が非正の寸法を含む: {d}")

    @property
    def is_unit(self) -> bool:
        """1x1 しか返さないポリシーなら True。"""
        return self.candidates() == (Dims(1, 1),)


@dataclass(frozen=True, eq=False)
class PoolPolicy(ShapePolicy):
    """固定の (w, h) 集合から一様に 1 つ選ぶポリシー。

    Parameters
    ----------
    shapes : Iterable[Dims | tuple[int, int]]
        候補形状。要素の重複は重みとして扱う。
    name : str, optional
        ログ・設定で使う表示名。
    """

    shapes: tuple[Dims, ...]
    name: str = "pool"

    def __init__(self, shapes: Iterable[Dims | tuple[int, int]], name: str = "pool") -> None:
        object.__setattr__(self, "shapes", tuple(Dims.coerce(s) for s in shapes))
        object.__setattr__(self, "name", str(name))
        self.validate()

    def draw(self, rng: RandomSource) -> Dims:
        return rng.choice(self.shapes)

    def candidates(self) -> tuple[Dims, ...]:
        return tuple(dict.fromkeys(self.shapes))


@dataclass(frozen=True, eq=False)
class IndependentAxisPolicy(ShapePolicy):
    """幅と高さをそれぞれ独立に一様抽選するポリシー。

    Notes
    -----
    幅を先、高さを後に引く。w×h の組み合わせは PoolPolicy とは異なる分布になる。
    """

    widths: tuple[int, ...]
    heights: tuple[int, ...]
    name: str = "independent"

    def __init__(
        self,
        widths: Iterable[int],
        heights: Iterable[int],
        name: str = "independent",
    ) -> None:
        w_vals = tuple(_require_int(v, name="widths") for v in widths)
        h_vals = tuple(_require_int(v, name="heights") for v in heights)
        if not w_vals or not h_vals:
            raise InvalidArgument(f"形状ポリシー {name!r} の widths/heights は空にできない")
        if min(w_vals) < 1 or min(h_vals) < 1:
            raise InvalidArgument(
                f"形状ポリシー {name!r} は正の値のみ許容する: widths={w_vals}, heights={h_vals}"
            )
        object.__setattr__(self, "widths", w_vals)
        object.__setattr__(self, "heights", h_vals)
        object.__setattr__(self, "name", str(name))

    def draw(self, rng: RandomSource) -> Dims:
        w = rng.choice(self.widths)
        h = rng.choice(self.heights)
        return Dims(w, h)

    def candidates(self) -> tuple[Dims, ...]:
        return tuple(
            dict.fromkeys(Dims(w, h) for w in self.widths for h in self.heights)
        )


UNIT = PoolPolicy([(1, 1)], name="unit")
"""1x1 のみを返す穴埋め用ポリシー。"""


class ShapePolicyRegistry:
    """名前から ShapePolicy を引くレジストリ。"""

    def __init__(self) -> None:
        self._items: dict[str, ShapePolicy] = {}

    def register(self, policy: ShapePolicy, *, overwrite: bool = True) -> ShapePolicy:
        """policy を `policy.name` で登録して返す。"""
        if not overwrite and policy.name in self._items:
            raise ValueError(f"形状ポリシー '{policy.name}' は既に登録されている")
        self._items[policy.name] = policy
        return policy

    def get(self, name: str) -> ShapePolicy:
        """登録済みポリシーを返す。

        Raises
        ------
        InvalidArgument
            未登録の名前が指定された場合。
        """
        try:
            return self._items[str(name)]
        except KeyError as exc:
            known = ", ".join(sorted(self._items))
            raise InvalidArgument(f"未登録の形状ポリシー: {name!r} (known: {known})") from exc

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def items(self) -> ItemsView[str, ShapePolicy]:
        return self._items.items()


shape_policy_registry = ShapePolicyRegistry()
"""組み込みプリセットを登録済みのグローバルレジストリ。"""

shape_policy_registry.register(IndependentAxisPolicy([1, 2, 3], [1, 2, 3], name="small"))
shape_policy_registry.register(IndependentAxisPolicy([2, 5], [1, 2, 3], name="mixed"))
shape_policy_registry.register(
    PoolPolicy([(5, 1), (1, 6), (2, 3), (4, 4), (7, 7)], name="pool")
)
shape_policy_registry.register(UNIT)


def resolve_shape_policy(policy: ShapePolicy | str) -> ShapePolicy:
    """名前または ShapePolicy を ShapePolicy に解決し、検証して返す。"""
    if isinstance(policy, ShapePolicy):
        policy.validate()
        return policy
    if isinstance(policy, str):
        return shape_policy_registry.get(policy)
    raise InvalidArgument(f"形状ポリシーは ShapePolicy か登録名である必要がある: got={policy!r}")


__all__ = [
    "IndependentAxisPolicy",
    "PoolPolicy",
    "ShapePolicy",
    "ShapePolicyRegistry",
    "UNIT",
    "resolve_shape_policy",
    "shape_policy_registry",
]
