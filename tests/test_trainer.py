import jax
import jax.numpy as jnp
import numpy as np
import optax

from modelzoo.core import Learner, Trainer
from modelzoo.layers import Linear
from modelzoo.optim import adam, sgd


def regression_batch():
    x = jax.random.normal(jax.random.key(0), (64, 3))
    w = jnp.array([[1.0], [-2.0], [0.5]])
    return {"feature": x, "label": x @ w + 0.3}


def make_trainer(optimizer):
    return Trainer(
        learner=Learner(
            model=Linear(in_dim=3, out_dim=1),
            loss_fn=optax.squared_error,
        ),
        optimizer=optimizer,
    )


def test_learner_loss():
    learner = Learner(model=Linear(in_dim=3, out_dim=1), loss_fn=optax.squared_error)
    p, s = learner.init(0)
    batch = regression_batch()
    loss, S = learner(batch, p, s)
    ŷ = batch["feature"] @ p["model"]["w"] + p["model"]["b"]
    np.testing.assert_allclose(loss, jnp.mean((ŷ - batch["label"]) ** 2), rtol=1e-5)
    assert set(S) == {"model"}


def test_learner_with_shared_feature_and_label():
    learner = Learner(
        model=Linear(in_dim=2, out_dim=2),
        loss_fn=optax.squared_error,
        feature_name="image",
        label_name="image",
    )
    p, s = learner.init(0)
    p["model"]["w"] = jnp.eye(2)
    p["model"]["b"] = jnp.zeros(2)
    loss, _ = learner({"image": jnp.ones((4, 2))}, p, s)
    assert float(loss) == 0.0


def test_trainer_state():
    trainer = make_trainer(sgd(0.1))
    p, s = trainer.init(0)
    assert set(p) == {"learner"}
    assert set(s) == {"learner", "optimizer", "step", "loss"}
    assert s["step"] == 0


def test_sgd_reduces_loss():
    trainer = make_trainer(sgd(0.1))
    p, s = trainer.init(0)
    batch = regression_batch()

    p, s = trainer(batch, p, s)
    first = float(s["loss"])
    for _ in range(99):
        p, s = trainer(batch, p, s)

    assert int(s["step"]) == 100
    assert float(s["loss"]) < first / 100
    np.testing.assert_allclose(
        p["learner"]["model"]["w"][:, 0], [1.0, -2.0, 0.5], atol=1e-2
    )


def test_single_sgd_step_is_plain_gradient_descent():
    trainer = make_trainer(sgd(0.1))
    p, s = trainer.init(0)
    batch = regression_batch()

    grads = jax.grad(lambda p: trainer.forward(batch, p, s)[0])(p)
    P, _ = trainer(batch, p, s)
    expected = jax.tree.map(lambda w, g: w - 0.1 * g, p, grads)
    np.testing.assert_allclose(
        P["learner"]["model"]["w"], expected["learner"]["model"]["w"], rtol=1e-5
    )


def test_adam_with_gradient_centralization():
    trainer = make_trainer(adam(0.05, centralize=True))
    p, s = trainer.init(0)
    batch = regression_batch()
    for _ in range(50):
        p, s = trainer(batch, p, s)
    assert np.isfinite(float(s["loss"]))
    assert int(s["step"]) == 50


def test_adam_state_matches_param_tree():
    trainer = make_trainer(adam(0.05))
    p, s = trainer.init(0)
    mu = s["optimizer"][0].mu
    assert jax.tree.structure(mu) == jax.tree.structure(p)

    batch = regression_batch()
    p, s = trainer(batch, p, s)
    first = float(s["loss"])
    for _ in range(199):
        p, s = trainer(batch, p, s)

    assert int(s["step"]) == 200
    assert float(s["loss"]) < first / 10
