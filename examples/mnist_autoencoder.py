# /// script
# dependencies = [
#   "modelzoo",
# ]
#
# [tool.uv.sources]
# modelzoo = { path = "../", editable = true }
# ///

import logging

import jax.numpy as jnp
import optax
from absl import logging as absl_logging
from jsonargparse import auto_cli
from rich.console import Console

from modelzoo.core import Learner, Trainer
from modelzoo.datasets import batched, load_images
from modelzoo.experiment import Experiment, run
from modelzoo.models import autoencoder
from modelzoo.optim import adam
from modelzoo.pprint import to_heatmap

logging.root.setLevel(logging.INFO)
absl_logging.use_python_logging()
logger = logging.getLogger(__name__)

console = Console()


def main(
    num_epochs: int = 5,
    batch_size: int = 32,
    latent_dim: int = 32,
    learning_rate: float = 1e-3,
    cache_dir: str = "tmp",
    seed: int = 0,
):
    images = load_images(cache_dir=cache_dir)

    exp = Experiment(
        name="mnist_autoencoder",
        seed=seed,
        num_epochs=num_epochs,
        trainer=Trainer(
            learner=Learner(
                model=autoencoder(latent_dim),
                loss_fn=optax.squared_error,
                feature_name="image",
                label_name="image",
            ),
            optimizer=adam(learning_rate),
        ),
        dataset=batched(images, batch_size=batch_size, shuffle_seed=seed).map(
            lambda x: {"image": x}
        ),
    )

    p, s = run(exp)
    exp.close()

    model = exp.trainer.learner.model
    reconstructed, _ = model(jnp.asarray(images[:1]), p["learner"]["model"], s["learner"]["model"])
    console.print(to_heatmap(images[0]))
    console.print(to_heatmap(reconstructed))


if __name__ == "__main__":
    auto_cli(main, as_positional=False)
