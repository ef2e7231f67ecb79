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
from modelzoo.datasets import MnistSource, batched
from modelzoo.experiment import (
    AccuracyEvaluator,
    DoEveryNSteps,
    Experiment,
    default_observer,
    run,
)
from modelzoo.layers import test_mode
from modelzoo.models import cnn_classifier
from modelzoo.optim import adam
from modelzoo.pprint import to_heatmap

logging.root.setLevel(logging.INFO)
absl_logging.use_python_logging()
logger = logging.getLogger(__name__)

console = Console()


def main(
    num_epochs: int = 1,
    batch_size: int = 32,
    learning_rate: float = 1e-3,
    centralize: bool = True,
    eval_every: int = 500,
    cache_dir: str = "tmp",
    seed: int = 0,
):
    train_source = MnistSource.load("train", cache_dir)
    test_source = MnistSource.load("test", cache_dir)
    test_ds = batched(test_source, batch_size=batch_size)

    exp = Experiment(
        name="mnist_cnn",
        seed=seed,
        num_epochs=num_epochs,
        trainer=Trainer(
            learner=Learner(
                model=cnn_classifier(),
                loss_fn=optax.softmax_cross_entropy_with_integer_labels,
                feature_name="image",
                label_name="label",
            ),
            optimizer=adam(learning_rate, centralize=centralize),
        ),
        dataset=batched(train_source, batch_size=batch_size, shuffle_seed=seed),
        observer=default_observer()
        * DoEveryNSteps(AccuracyEvaluator(test_ds), n=eval_every),
    )

    p, s = run(exp)
    exp.close()

    model = exp.trainer.learner.model
    sample = next(iter(test_ds))
    logits, _ = model(
        jnp.asarray(sample["image"][:1]),
        p["learner"]["model"],
        test_mode(s["learner"]["model"]),
    )
    console.print(to_heatmap(sample["image"][0]))
    logger.info(
        f"Predicted {int(jnp.argmax(logits, axis=-1)[0])}, expected {int(sample['label'][0])}"
    )


if __name__ == "__main__":
    auto_cli(main, as_positional=False)
