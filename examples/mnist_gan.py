# /// script
# dependencies = [
#   "modelzoo",
# ]
#
# [tool.uv.sources]
# modelzoo = { path = "../", editable = true }
# ///

import logging

import jax
from absl import logging as absl_logging
from jsonargparse import auto_cli
from rich.console import Console

from modelzoo.datasets import batched, load_images
from modelzoo.gan import GAN
from modelzoo.models import discriminator, generator
from modelzoo.pprint import to_heatmap, to_rich

logging.root.setLevel(logging.INFO)
absl_logging.use_python_logging()
logger = logging.getLogger(__name__)

console = Console()


def main(
    num_epochs: int = 10,
    batch_size: int = 32,
    latent_dim: int = 100,
    d_step_size: float = 0.01,
    g_step_size: float = 0.05,
    sample_every: int = 50,
    cache_dir: str = "tmp",
    seed: int = 0,
):
    images = load_images(cache_dir=cache_dir)
    batches = batched(images, batch_size=batch_size)

    gan = GAN(
        generator=generator(latent_dim),
        discriminator=discriminator(),
        latent_dim=latent_dim,
        d_step_size=d_step_size,
        g_step_size=g_step_size,
        sample_every=sample_every,
    )

    logger.info("Initializing parameters...")
    p, s = gan.init(seed)
    console.print(to_rich(p, "params"))

    p, s = gan.train(batches, p, s, num_epochs=num_epochs, console=console)

    latent = jax.random.uniform(jax.random.key(seed + 1), (1, latent_dim))
    console.print(to_heatmap(gan.generate(p, s, latent)))


if __name__ == "__main__":
    auto_cli(main, as_positional=False)
