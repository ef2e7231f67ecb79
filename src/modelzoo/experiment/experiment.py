import logging

import grain
import jax
import jax.numpy as jnp
import orbax.checkpoint as ocp
from pydantic import BaseModel, ConfigDict, Field

from modelzoo.base import Param, PyTree, State
from modelzoo.core import Trainer

from .observers import ObserverBase, default_observer

logger = logging.getLogger(__name__)


def _is_key(x) -> bool:
    return isinstance(x, jax.Array) and jax.dtypes.issubdtype(
        x.dtype, jax.dtypes.prng_key
    )


def _to_saveable(tree: PyTree) -> PyTree:
    # orbax stores plain arrays only
    return jax.tree.map(
        lambda x: jax.random.key_data(x) if _is_key(x) else jnp.asarray(x), tree
    )


def _from_saveable(template: PyTree, tree: PyTree) -> PyTree:
    return jax.tree.map(
        lambda t, x: jax.random.wrap_key_data(x, impl=jax.random.key_impl(t))
        if _is_key(t)
        else x,
        template,
        tree,
    )


class Experiment(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = "mnist"

    seed: int = 0
    trainer: Trainer

    dataset: grain.MapDataset | grain.IterDataset

    num_epochs: int = 1
    max_steps: int | None = None

    checkpoint_manager: ocp.CheckpointManager | None = None
    observer: ObserverBase = Field(default_factory=default_observer)

    def restore(self) -> tuple[int, Param, State]:
        p, s = self.trainer.init(self.seed)
        if self.checkpoint_manager is None:
            return 0, p, s

        step = self.checkpoint_manager.latest_step()

        if step is None:
            logger.info(
                f"No checkpoints found under {self.checkpoint_manager.directory}, initialized with seed {self.seed}"
            )
            return 0, p, s

        saveable = _to_saveable(s)
        restored = self.checkpoint_manager.restore(
            step,
            args=ocp.args.Composite(
                param=ocp.args.PyTreeRestore(
                    item=p,
                    restore_args=ocp.checkpoint_utils.construct_restore_args(p),
                ),
                state=ocp.args.PyTreeRestore(
                    item=saveable,
                    restore_args=ocp.checkpoint_utils.construct_restore_args(saveable),
                ),
            ),
        )
        logger.info(f"Restored step {step} from {self.checkpoint_manager.directory}")
        return step, restored["param"], _from_saveable(s, restored["state"])

    def save(self, step: int, p: Param, s: State):
        if self.checkpoint_manager:
            self.checkpoint_manager.save(
                step,
                args=ocp.args.Composite(
                    param=ocp.args.PyTreeSave(item=p),
                    state=ocp.args.PyTreeSave(item=_to_saveable(s)),
                ),
            )

    def close(self):
        if self.checkpoint_manager:
            self.checkpoint_manager.wait_until_finished()
            self.checkpoint_manager.close()
