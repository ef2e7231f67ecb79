import jax
import jax.numpy as jnp

from modelzoo import layers
from modelzoo.models import (
    autoencoder,
    cnn_classifier,
    discriminator,
    generator,
    lstm_tagger,
)


def test_generator():
    model = generator(latent_dim=100)
    p, s = model.init(0)
    o, _ = model(jax.random.normal(jax.random.key(0), (2, 100)), p, s)
    assert o.shape == (2, 28, 28)
    assert (jnp.abs(o) <= 1).all()


def test_discriminator():
    model = discriminator()
    p, s = model.init(0)
    o, _ = model(jnp.ones((3, 28, 28)), p, s)
    assert o.shape == (3, 1)
    assert ((o > 0) & (o < 1)).all()


def test_cnn_classifier():
    model = cnn_classifier(num_classes=10)
    p, s = model.init(0)
    x = jnp.zeros((2, 28, 28))
    o, _ = model(x, p, s)
    assert o.shape == (2, 10)
    o_test, _ = model(x, p, layers.test_mode(s))
    assert o_test.shape == (2, 10)


def test_lstm_tagger():
    model = lstm_tagger(vocab_size=32, num_tags=4)
    p, s = model.init(0)
    o, _ = model(jnp.zeros((2, 16), dtype=jnp.int32), p, s)
    assert o.shape == (2, 16, 4)


def test_autoencoder():
    model = autoencoder(latent_dim=8)
    p, s = model.init(0)
    assert p["encoder"]["layer_2"]["w"].shape == (128, 8)
    o, _ = model(jnp.ones((2, 28, 28)), p, s)
    assert o.shape == (2, 28, 28)
    assert ((o >= 0) & (o <= 1)).all()
