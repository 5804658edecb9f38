# どこで: `src/blockgrid/core/errors.py`。
# 何を: blockgrid 共通の例外型を定義する。
# なぜ: 引数不正を呼び出し境界で一律に判別できるようにするため。

from __future__ import annotations


class InvalidArgument(ValueError):
    """グリッド寸法・形状ポリシー・パレットなどの引数が不正な場合の例外。"""


__all__ = ["InvalidArgument"]
