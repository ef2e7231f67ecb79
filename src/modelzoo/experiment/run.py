import logging
import time

import jax
import jax.numpy as jnp

from modelzoo.base import Param, State

from .experiment import Experiment

logger = logging.getLogger(__name__)


def run(exp: Experiment) -> tuple[Param, State]:
    logger.info(f"Running experiment: {exp.name}")

    step, p, s = exp.restore()
    exp.observer(step, exp, p, s)

    for epoch in range(1, exp.num_epochs + 1):
        start = time.perf_counter()
        for batch in exp.dataset:
            if exp.max_steps is not None and step >= exp.max_steps:
                break
            x = jax.tree.map(jnp.asarray, batch)
            p, s = exp.trainer(x, p, s)
            step += 1

            exp.observer(step, exp, p, s)
            exp.save(step, p, s)

        logger.info(f"Epoch {epoch} Time: {time.perf_counter() - start}s")
        if exp.max_steps is not None and step >= exp.max_steps:
            break

    return p, s
