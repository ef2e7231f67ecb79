import jax
import jax.numpy as jnp
import numpy as np
import pytest
from rich.console import Console
from rich.tree import Tree

from modelzoo.layers import Chain, Linear
from modelzoo.pprint import summary, to_heatmap, to_rich, typeof


def test_heatmap_layout():
    text = to_heatmap(np.arange(12).reshape(3, 4))
    rows = text.plain.split("\n")
    assert len(rows) == 3
    assert all(row == "██" * 4 for row in rows)


def test_heatmap_shades_follow_values():
    text = to_heatmap(jnp.array([[0.0, 1.0]]))
    styles = [str(span.style) for span in text.spans]
    assert styles == ["color(232)", "color(255)"]


def test_heatmap_squeezes_leading_axis_and_handles_constants():
    text = to_heatmap(jnp.zeros((1, 2, 2)))
    assert text.plain == "████\n████"


def test_heatmap_rejects_vectors():
    with pytest.raises(ValueError):
        to_heatmap(np.zeros(3))


def test_to_rich_tree():
    p, _ = Chain(Linear(in_dim=2, out_dim=3)).init(0)
    tree = to_rich(p, "params")
    assert isinstance(tree, Tree)
    assert len(tree.children) == 1
    assert len(tree.children[0].label.children) == 2
    assert "float32" in typeof(p["layer_0"]["w"])
    assert "nonzero=0/3" in summary(p["layer_0"]["b"])
    assert "nonzero=" in summary(p["layer_0"]["w"])


def test_summary_of_leaves():
    assert summary(jax.random.key(0)) == "PRNG key"
    assert summary(0.5) == "[bold cyan]0.5[/bold cyan]"
    assert summary(jnp.zeros((0,))) == "empty"
    assert "range=[-1, 2]" in summary(jnp.array([-1.0, 2.0]))
    assert typeof("abc") == "str"
    assert typeof(jnp.zeros((2, 3), jnp.int32)) == "int32[2, 3]"


def test_to_rich_renders_nested_state():
    s = {"rng": jax.random.key(0), "step": 3, "stats": [jnp.ones(2)]}
    console = Console(width=200, record=True, color_system=None)
    console.print(to_rich(s, "state"))
    out = console.export_text()
    assert "PRNG key" in out
    assert "step" in out and "3" in out
    assert "float32[2]" in out
