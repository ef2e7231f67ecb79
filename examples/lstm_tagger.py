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

from modelzoo.core import Learner, Trainer
from modelzoo.datasets import ToyTaggingSource, batched
from modelzoo.experiment import (
    AccuracyEvaluator,
    DoEveryNSteps,
    Experiment,
    default_observer,
    run,
)
from modelzoo.models import lstm_tagger
from modelzoo.optim import adam

logging.root.setLevel(logging.INFO)
absl_logging.use_python_logging()
logger = logging.getLogger(__name__)


def main(
    num_epochs: int = 5,
    batch_size: int = 32,
    seq_len: int = 16,
    vocab_size: int = 32,
    num_tags: int = 4,
    learning_rate: float = 3e-3,
    seed: int = 0,
):
    train_source = ToyTaggingSource(
        seq_len=seq_len, vocab_size=vocab_size, num_tags=num_tags, seed=seed
    )
    test_source = ToyTaggingSource(
        num_samples=512,
        seq_len=seq_len,
        vocab_size=vocab_size,
        num_tags=num_tags,
        seed=seed + 1,
    )
    test_ds = batched(test_source, batch_size=batch_size)

    exp = Experiment(
        name="lstm_tagger",
        seed=seed,
        num_epochs=num_epochs,
        trainer=Trainer(
            learner=Learner(
                model=lstm_tagger(vocab_size, num_tags),
                loss_fn=optax.softmax_cross_entropy_with_integer_labels,
                feature_name="tokens",
                label_name="tags",
            ),
            optimizer=adam(learning_rate),
        ),
        dataset=batched(train_source, batch_size=batch_size, shuffle_seed=seed),
        observer=default_observer()
        * DoEveryNSteps(AccuracyEvaluator(test_ds), n=100),
    )

    p, s = run(exp)
    exp.close()

    sample = test_source[0]
    logits, _ = exp.trainer.learner.model(
        jnp.asarray(sample["tokens"][None]), p["learner"]["model"], s["learner"]["model"]
    )
    logger.info(f"tokens:    {sample['tokens'].tolist()}")
    logger.info(f"tags:      {sample['tags'].tolist()}")
    logger.info(f"predicted: {jnp.argmax(logits, axis=-1)[0].tolist()}")


if __name__ == "__main__":
    auto_cli(main, as_positional=False)
