import logging
import time
from functools import partial
from typing import Iterable

import jax
import jax.numpy as jnp
from jax import Array, jit, value_and_grad
from rich.console import Console

from .base import PRNG, Param, PyTree, State
from .core import LayerBase
from .layers import test_mode
from .losses import binary_cross_entropy
from .pprint import to_heatmap

logger = logging.getLogger(__name__)


def _descend(params: Param, grads: Param, step: float) -> Param:
    return jax.tree.map(lambda w, g: w - g * step, params, grads)


class GAN(LayerBase):
    """Generator and discriminator trained by alternating gradient descent.

    Each update draws a latent batch, moves the discriminator one step towards
    calling real images valid and one step towards calling generated images
    fake, then moves the generator one step towards fooling the updated
    discriminator. Both use plain gradient descent with constant step sizes.
    """

    generator: LayerBase
    discriminator: LayerBase
    latent_dim: int = 100
    d_step_size: float = 0.01
    g_step_size: float = 0.05
    sample_every: int = 50

    def state(self, rng: PRNG) -> State:
        return State(rng=rng, step=0, d_loss=0.0, g_loss=0.0)

    def generate(self, p: Param, s: State, latent: Array) -> Array:
        images, _ = self.generator(
            latent, p["generator"], test_mode(s["generator"])
        )
        return images

    def d_loss(
        self, d_params: Param, d_state: State, images: Array, targets: Array
    ) -> tuple[Array, State]:
        preds, S = self.discriminator(images, d_params, d_state)
        return jnp.mean(binary_cross_entropy(preds, targets)), S

    def update_d(
        self,
        d_params: Param,
        d_state: State,
        images: Array,
        targets: Array,
        step: float,
    ) -> tuple[Param, State, Array]:
        (loss, S), grads = value_and_grad(self.d_loss, has_aux=True)(
            d_params, d_state, images, targets
        )
        return _descend(d_params, grads, step), S, loss

    def g_loss(
        self,
        g_params: Param,
        g_state: State,
        d_params: Param,
        d_state: State,
        latent: Array,
    ) -> tuple[Array, State]:
        valid = jnp.ones((latent.shape[0], 1))
        fake_images, S = self.generator(latent, g_params, g_state)
        loss, _ = self.d_loss(d_params, d_state, fake_images, valid)
        return loss, S

    def update_g(
        self,
        g_params: Param,
        g_state: State,
        d_params: Param,
        d_state: State,
        latent: Array,
        step: float,
    ) -> tuple[Param, State, Array]:
        (loss, S), grads = value_and_grad(self.g_loss, has_aux=True)(
            g_params, g_state, d_params, d_state, latent
        )
        return _descend(g_params, grads, step), S, loss

    def forward(self, x: PyTree, p: Param, s: State) -> tuple[Param, State]:
        batch_size = x.shape[0]
        valid = jnp.ones((batch_size, 1))
        fake = jnp.zeros((batch_size, 1))

        rng, rng_latent = jax.random.split(s["rng"])
        latent = jax.random.normal(rng_latent, (batch_size, self.latent_dim))

        fake_images, _ = self.generator(latent, p["generator"], s["generator"])

        d_params, d_state, d_loss_real = self.update_d(
            p["discriminator"], s["discriminator"], x, valid, self.d_step_size
        )
        d_params, d_state, d_loss_fake = self.update_d(
            d_params, d_state, fake_images, fake, self.d_step_size
        )

        g_params, g_state, g_loss = self.update_g(
            p["generator"], s["generator"], d_params, d_state, latent, self.g_step_size
        )

        return Param(generator=g_params, discriminator=d_params), State(
            generator=g_state,
            discriminator=d_state,
            rng=rng,
            step=s["step"] + 1,
            d_loss=(d_loss_real + d_loss_fake) / 2,
            g_loss=g_loss,
        )

    @partial(jit, static_argnums=0)
    def update(self, x, p, s):
        return self.forward(x, p, s)

    def __call__(self, x: PyTree, p: Param, s: State) -> tuple[Param, State]:
        return self.update(x, p, s)

    def train_epoch(
        self,
        batches: Iterable,
        p: Param,
        s: State,
        console: Console | None = None,
    ) -> tuple[Param, State]:
        console = console or Console()
        for i, images in enumerate(batches):
            new_p, new_s = self(jnp.asarray(images), p, s)

            if i % self.sample_every == 0:
                latent = jax.random.normal(
                    jax.random.fold_in(s["rng"], i), (1, self.latent_dim)
                )
                logger.info(
                    f"Batch {i}: d_loss={float(new_s['d_loss']):.4f} g_loss={float(new_s['g_loss']):.4f}"
                )
                console.print(to_heatmap(self.generate(p, s, latent)))

            p, s = new_p, new_s
        return p, s

    def train(
        self,
        batches: Iterable,
        p: Param,
        s: State,
        num_epochs: int = 5,
        console: Console | None = None,
    ) -> tuple[Param, State]:
        for epoch in range(1, num_epochs + 1):
            start = time.perf_counter()
            p, s = self.train_epoch(batches, p, s, console)
            logger.info(f"Epoch {epoch} Time: {time.perf_counter() - start}s")
        return p, s
