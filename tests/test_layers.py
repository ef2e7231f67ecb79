import jax
import jax.numpy as jnp
import numpy as np

from modelzoo import layers
from modelzoo.layers import (
    LSTM,
    BatchNorm,
    Chain,
    Conv,
    Dropout,
    Embedding,
    F,
    Linear,
    MaxPool,
    Rearrange,
    to_layer,
)


def test_linear():
    layer = Linear(in_dim=3, out_dim=5, activation=jax.nn.relu)
    p, s = layer.init(0)
    assert p["w"].shape == (3, 5)
    assert p["b"].shape == (5,)
    assert s == {}

    x = jax.random.normal(jax.random.key(1), (4, 3))
    o, _ = layer(x, p, s)
    assert o.shape == (4, 5)
    assert (o >= 0).all()
    np.testing.assert_allclose(o, jax.nn.relu(x @ p["w"] + p["b"]), rtol=1e-5)


def test_linear_without_bias():
    layer = Linear(in_dim=3, out_dim=2, b_init=None)
    p, s = layer.init(0)
    assert p["b"] is None
    o, _ = layer(jnp.ones((1, 3)), p, s)
    np.testing.assert_allclose(o, jnp.ones((1, 3)) @ p["w"], rtol=1e-6)


def test_init_is_deterministic():
    layer = Linear(in_dim=3, out_dim=2)
    p1, _ = layer.init(7)
    p2, _ = layer.init(7)
    p3, _ = layer.init(8)
    np.testing.assert_array_equal(p1["w"], p2["w"])
    assert not np.array_equal(p1["w"], p3["w"])


def test_chain_names_and_composition():
    chain = Chain(
        Linear(in_dim=3, out_dim=4), jax.nn.relu, out=Linear(in_dim=4, out_dim=2)
    )
    assert chain.names == ("layer_0", "layer_1", "out")
    assert isinstance(chain.layers[1], F)

    p, s = chain.init(0)
    assert set(p) == {"layer_0", "layer_1", "out"}
    assert p["layer_1"] == {}

    x = jnp.ones((2, 3))
    o, S = chain(x, p, s)
    h = jax.nn.relu(x @ p["layer_0"]["w"] + p["layer_0"]["b"])
    np.testing.assert_allclose(o, h @ p["out"]["w"] + p["out"]["b"], rtol=1e-5)
    assert set(S) == set(s)


def test_nested_chain_params_are_nested():
    chain = Chain(encoder=Chain(Linear(in_dim=2, out_dim=2)), decoder=Linear(in_dim=2, out_dim=2))
    p, _ = chain.init(0)
    assert p["encoder"]["layer_0"]["w"].shape == (2, 2)
    assert p["decoder"]["w"].shape == (2, 2)


def test_to_layer():
    linear = Linear(in_dim=1, out_dim=1)
    assert to_layer(linear) is linear
    assert isinstance(to_layer(jnp.tanh), F)


def test_conv_and_pool_shapes():
    chain = Chain(
        Conv(in_channels=1, out_channels=8, activation=jax.nn.relu),
        MaxPool(window=(2, 2)),
    )
    p, s = chain.init(0)
    assert p["layer_0"]["w"].shape == (3, 3, 1, 8)
    o, _ = chain(jnp.ones((2, 28, 28, 1)), p, s)
    assert o.shape == (2, 14, 14, 8)


def test_max_pool_values():
    x = jnp.arange(16.0).reshape(1, 4, 4, 1)
    o, _ = MaxPool(window=(2, 2))(x, {}, {})
    np.testing.assert_array_equal(o[0, :, :, 0], [[5.0, 7.0], [13.0, 15.0]])


def test_rearrange():
    layer = Rearrange(pattern="b (h w) -> b h w", sizes={"h": 2})
    o, _ = layer(jnp.arange(8).reshape(2, 4), {}, {})
    assert o.shape == (2, 2, 2)
    assert hash(layer) == hash(Rearrange(pattern="b (h w) -> b h w", sizes={"h": 2}))


def test_dropout_modes():
    layer = Dropout(rate=0.5)
    p, s = layer.init(0)
    x = jnp.ones((1000,))

    o, S = layer(x, p, s)
    zeros = int((o == 0).sum())
    assert 300 < zeros < 700
    np.testing.assert_allclose(o[o != 0], 2.0)

    o, _ = layer(x, p, layers.test_mode(s))
    np.testing.assert_array_equal(o, x)


def test_batch_norm_train_and_test():
    layer = BatchNorm(dim=3, momentum=0.9)
    p, s = layer.init(0)
    x = jax.random.normal(jax.random.key(0), (64, 3)) * 2.0 + 5.0

    o, S = layer(x, p, s)
    np.testing.assert_allclose(o.mean(axis=0), 0.0, atol=1e-4)
    np.testing.assert_allclose(o.std(axis=0), 1.0, atol=1e-2)
    np.testing.assert_allclose(S["mean"], 0.1 * x.mean(axis=0), rtol=1e-4)

    o, S2 = layer(x, p, layers.test_mode(S))
    expected = (x - S["mean"]) / jnp.sqrt(S["var"] + layer.epsilon)
    np.testing.assert_allclose(o, expected, rtol=1e-4, atol=1e-4)
    np.testing.assert_array_equal(S2["mean"], S["mean"])


def test_modes_only_touch_training_flags():
    chain = Chain(Dropout(rate=0.1), BatchNorm(dim=2))
    _, s = chain.init(0)

    s_test = layers.test_mode(s)
    assert s_test["layer_0"]["is_training"] is False
    assert s_test["layer_1"]["is_training"] is False
    np.testing.assert_array_equal(s_test["layer_1"]["mean"], s["layer_1"]["mean"])
    assert jax.random.key_data(s_test["layer_0"]["rng"]).tolist() == (
        jax.random.key_data(s["layer_0"]["rng"]).tolist()
    )

    s_train = layers.train_mode(s_test)
    assert s_train["layer_0"]["is_training"] is True


def test_embedding_lookup():
    layer = Embedding(in_dim=10, out_dim=4)
    p, s = layer.init(0)
    o, _ = layer(jnp.array([[1, 3]]), p, s)
    assert o.shape == (1, 2, 4)
    np.testing.assert_array_equal(o[0, 1], p["w"][3])


def test_lstm_shape_and_causality():
    layer = LSTM(in_dim=3, hidden_dim=5)
    p, s = layer.init(0)
    assert p["w"].shape == (3, 20)
    assert p["u"].shape == (5, 20)

    x = jax.random.normal(jax.random.key(1), (2, 6, 3))
    o, _ = layer(x, p, s)
    assert o.shape == (2, 6, 5)

    o2, _ = layer(x.at[:, -1].set(10.0), p, s)
    np.testing.assert_allclose(o2[:, :-1], o[:, :-1], rtol=1e-6)
    assert not np.allclose(o2[:, -1], o[:, -1])
