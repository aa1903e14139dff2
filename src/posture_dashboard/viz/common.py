from __future__ import annotations

from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt


def save_figure(path: Path, *, tight: bool = True, **savefig_kwargs: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if tight:
        plt.tight_layout()
    plt.savefig(path, **savefig_kwargs)
    plt.close()
    return path
