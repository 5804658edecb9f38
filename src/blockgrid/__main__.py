# どこで: `src/blockgrid/__main__.py`。
# 何を: `python -m blockgrid` のエントリポイント。

from __future__ import annotations

import sys

from blockgrid.cli import main

if __name__ == "__main__":
    sys.exit(main())
