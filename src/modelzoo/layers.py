from typing import Callable

import einops
import jax
from jax import Array
import jax.numpy as jnp
from jax.nn.initializers import (
    glorot_uniform,
    lecun_normal,
    ones,
    orthogonal,
    variance_scaling,
    zeros,
)

from .base import PRNG, FrozenDict, PyTree, Param, State, dispatch
from .core import LayerBase, LayerLike


class F(LayerBase):
    f: Callable

    def forward(self, x: PyTree, p: Param, s: State) -> tuple[PyTree, State]:
        return self.f(x), s


@dispatch
def to_layer(x: LayerBase):
    return x


@dispatch
def to_layer(x: Callable):
    return F(f=x)


class NamedLayers(LayerBase):
    names: tuple[str, ...]
    layers: tuple[LayerBase, ...]

    def __init__(self, *args, **kwargs):
        names = tuple(f"layer_{i}" for i in range(len(args))) + tuple(kwargs.keys())
        layers = tuple(to_layer(l) for l in tuple(args) + tuple(kwargs.values()))
        super().__init__(names=names, layers=layers)

    def sublayers(self) -> dict:
        return {k: v for k, v in zip(self.names, self.layers)}


class Chain(NamedLayers):
    def __init__(self, *args: LayerLike, **kwargs: LayerLike):
        super().__init__(*args, **kwargs)

    def forward(self, x: PyTree, p: Param, s: State) -> tuple[PyTree, State]:
        h = x
        S = State()
        for name, layer in zip(self.names, self.layers):
            h, S[name] = layer(h, p[name], s[name])
        return h, S


#####


class Linear(LayerBase):
    in_dim: int
    out_dim: int
    w_init: Callable = lecun_normal()
    b_init: None | Callable = zeros
    activation: None | Callable = None

    def param(self, rng: PRNG) -> Param:
        rng_w, rng_b = jax.random.split(rng)
        return Param(
            w=self.w_init(rng_w, (self.in_dim, self.out_dim), self.param_dtype),
            b=(
                self.b_init(rng_b, (self.out_dim,), self.param_dtype)
                if self.b_init
                else None
            ),
        )

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        o = jnp.einsum("...d,dh->...h", x, p["w"])
        if p["b"] is not None:
            o += p["b"]
        if self.activation:
            o = self.activation(o)
        return o, s


class Conv(LayerBase):
    """2-D convolution over ``NHWC`` inputs."""

    in_channels: int
    out_channels: int
    kernel_size: tuple[int, int] = (3, 3)
    strides: tuple[int, int] = (1, 1)
    padding: str = "SAME"
    w_init: Callable = lecun_normal()
    b_init: Callable = zeros
    activation: None | Callable = None

    def param(self, rng: PRNG) -> Param:
        rng_w, rng_b = jax.random.split(rng)
        return Param(
            w=self.w_init(
                rng_w,
                (*self.kernel_size, self.in_channels, self.out_channels),
                self.param_dtype,
            ),
            b=self.b_init(rng_b, (self.out_channels,), self.param_dtype),
        )

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        o = jax.lax.conv_general_dilated(
            x,
            p["w"],
            window_strides=self.strides,
            padding=self.padding,
            dimension_numbers=("NHWC", "HWIO", "NHWC"),
        )
        o = o + p["b"]
        if self.activation:
            o = self.activation(o)
        return o, s


class MaxPool(LayerBase):
    window: tuple[int, int] = (2, 2)
    strides: tuple[int, int] | None = None
    padding: str = "VALID"

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        strides = self.strides or self.window
        o = jax.lax.reduce_window(
            x,
            -jnp.inf,
            jax.lax.max,
            (1, *self.window, 1),
            (1, *strides, 1),
            self.padding,
        )
        return o, s


class Rearrange(LayerBase):
    pattern: str
    sizes: FrozenDict = FrozenDict({})

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        return einops.rearrange(x, self.pattern, **self.sizes), s


#####


class Dropout(LayerBase):
    rate: float

    def state(self, rng: PRNG) -> State:
        return State(rng=rng, is_training=True)

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        rng, rng_next = jax.random.split(s["rng"])
        S = State(rng=rng_next, is_training=s["is_training"])
        if self.rate == 0:
            return x, S
        mask = jax.random.bernoulli(rng, self.rate, x.shape)
        o = jnp.where(s["is_training"], jnp.where(mask, 0, x) / (1 - self.rate), x)
        return o, S


class BatchNorm(LayerBase):
    """Normalizes over every axis but the last one.

    While training, batch statistics are used and the running averages in the
    state are updated with ``momentum``. In test mode the running averages are
    used instead and left untouched.
    """

    dim: int
    momentum: float = 0.9
    epsilon: float = 1e-5
    w_init: Callable = ones
    b_init: Callable = zeros

    def param(self, rng: PRNG) -> Param:
        w_rng, b_rng = jax.random.split(rng)
        return Param(
            w=self.w_init(w_rng, (self.dim,), self.param_dtype),
            b=self.b_init(b_rng, (self.dim,), self.param_dtype),
        )

    def state(self, rng: PRNG) -> State:
        return State(
            mean=jnp.zeros((self.dim,), self.param_dtype),
            var=jnp.ones((self.dim,), self.param_dtype),
            is_training=True,
        )

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        axes = tuple(range(x.ndim - 1))
        batch_mean = jnp.mean(x, axis=axes)
        batch_var = jnp.var(x, axis=axes)

        is_training = s["is_training"]
        mean = jnp.where(is_training, batch_mean, s["mean"])
        var = jnp.where(is_training, batch_var, s["var"])
        o = (x - mean) * jax.lax.rsqrt(var + self.epsilon) * p["w"] + p["b"]

        m = self.momentum
        S = State(
            mean=jnp.where(
                is_training,
                m * s["mean"] + (1 - m) * jax.lax.stop_gradient(batch_mean),
                s["mean"],
            ),
            var=jnp.where(
                is_training,
                m * s["var"] + (1 - m) * jax.lax.stop_gradient(batch_var),
                s["var"],
            ),
            is_training=is_training,
        )
        return o, S


def _update_mode(s: State, key: str, val):
    return jax.tree.map_with_path(
        lambda path, x: (
            val if jax.tree_util.keystr(path[-1:], simple=True) == key else x
        ),
        s,
    )


def train_mode(s: State):
    return _update_mode(s, "is_training", True)


def test_mode(s: State):
    return _update_mode(s, "is_training", False)


#####


class Embedding(LayerBase):
    in_dim: int
    out_dim: int
    w_init: Callable = variance_scaling(1.0, "fan_in", "normal", out_axis=0)

    def param(self, rng: PRNG) -> Param:
        return Param(w=self.w_init(rng, (self.in_dim, self.out_dim), self.param_dtype))

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        return p["w"][x], s


class LSTM(LayerBase):
    """Long short-term memory over ``(batch, time, in_dim)`` inputs.

    Returns the hidden state of every time step, ``(batch, time, hidden_dim)``.
    Gates are packed as ``[input, forget, cell, output]``.
    """

    in_dim: int
    hidden_dim: int
    w_init: Callable = glorot_uniform()
    u_init: Callable = orthogonal()
    b_init: Callable = zeros

    def param(self, rng: PRNG) -> Param:
        rng_w, rng_u, rng_b = jax.random.split(rng, 3)
        H = self.hidden_dim
        return Param(
            w=self.w_init(rng_w, (self.in_dim, 4 * H), self.param_dtype),
            u=self.u_init(rng_u, (H, 4 * H), self.param_dtype),
            b=self.b_init(rng_b, (4 * H,), self.param_dtype),
        )

    def forward(self, x: Array, p: Param, s: State) -> tuple[Array, State]:
        B, H = x.shape[0], self.hidden_dim
        xw = jnp.einsum("btd,dh->tbh", x, p["w"]) + p["b"]

        def cell(carry, xwₜ):
            h, c = carry
            z = xwₜ + h @ p["u"]
            i, f, g, o = jnp.split(z, 4, axis=-1)
            c = jax.nn.sigmoid(f) * c + jax.nn.sigmoid(i) * jnp.tanh(g)
            h = jax.nn.sigmoid(o) * jnp.tanh(c)
            return (h, c), h

        h0 = jnp.zeros((B, H), xw.dtype)
        _, hs = jax.lax.scan(cell, (h0, h0), xw)
        return jnp.swapaxes(hs, 0, 1), s
