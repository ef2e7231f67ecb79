import jax
import numpy as np
from jax import Array
from rich.console import RenderableType
from rich.text import Text
from rich.tree import Tree

from .base import dispatch

#####
# Visualization
#####


@dispatch
def summary(x) -> str:
    return repr(x)


@dispatch
def summary(x: bool | int | float) -> str:
    return f"[bold cyan]{x}[/bold cyan]"


@dispatch
def summary(x: Array) -> str:
    if jax.dtypes.issubdtype(x.dtype, jax.dtypes.prng_key):
        return "PRNG key"
    a = np.asarray(x, dtype=np.float64)
    if a.size == 0:
        return "empty"
    return (
        f"mean={a.mean():.4g} std={a.std():.4g} "
        f"range=[{a.min():.4g}, {a.max():.4g}] "
        f"nonzero={np.count_nonzero(a)}/{a.size}"
    )


@dispatch
def typeof(x) -> str:
    return type(x).__name__


@dispatch
def typeof(x: Array) -> str:
    return f"{x.dtype}{list(x.shape)}"


def to_rich(x, k="🎯") -> RenderableType:
    t = typeof(x)
    ts = f"italic color({hash(type(x)) % 256})"
    label = f"[{ts} dim]<{t}>[/{ts} dim]"
    ks = f"color({hash(k) % 256})"
    label = f"[{ks} bold]{k}[/{ks} bold]: {label}"

    if isinstance(x, dict) or isinstance(x, (list, tuple)):
        items = x.items() if isinstance(x, dict) else enumerate(x)
        root = Tree(label, guide_style=f"dim {ks}")
        for k, v in items:
            root.add(to_rich(v, str(k)))
        return root
    else:
        label = f"{label} [bright_yellow]=>[/bright_yellow] {summary(x)}"
        return Tree(label, guide_style=f"dim {ks}")


# xterm grayscale ramp, black to white
_SHADES = [f"color({i})" for i in range(232, 256)]


def to_heatmap(x) -> Text:
    """Renders a 2-D array as rows of shaded cells, scaled by its own min/max.

    A leading axis of size 1 is squeezed, so a single ``(1, 28, 28)`` sample
    can be passed as is.
    """
    a = np.asarray(x, dtype=np.float32)
    while a.ndim > 2 and a.shape[0] == 1:
        a = a[0]
    if a.ndim != 2:
        raise ValueError(f"Expected a 2-D array, got shape {a.shape}")

    lo, hi = a.min(), a.max()
    scaled = (a - lo) / (hi - lo) if hi > lo else np.zeros_like(a)
    levels = np.rint(scaled * (len(_SHADES) - 1)).astype(int)

    text = Text()
    for i, row in enumerate(levels):
        if i:
            text.append("\n")
        for level in row:
            text.append("██", style=_SHADES[level])
    return text
