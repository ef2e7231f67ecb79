import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable, Protocol

import jax.numpy as jnp

from modelzoo.base import Param, State
from modelzoo.layers import test_mode

if TYPE_CHECKING:
    from .experiment import Experiment

logger = logging.getLogger(__name__)


class Observer(Protocol):
    def __call__(self, step: int, exp: "Experiment", param: Param, state: State): ...


class ObserverBase:
    """An observer is called with the step, experiment, params and state after
    every training step. ``a * b`` calls ``a`` then ``b``."""

    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        raise NotImplementedError

    def __mul__(self, other: Observer) -> "CompositeObserver":
        return CompositeObserver([self, other])

    def __rmul__(self, other: Observer) -> "CompositeObserver":
        return CompositeObserver([other, self])


class DoWhen(ObserverBase):
    def __init__(self, observer: Observer, when: Callable[[int], bool]):
        self.observer = observer
        self.when = when

    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        if self.when(step):
            return self.observer(step, exp, param, state)


def every_n_step(n: int) -> Callable[[int], bool]:
    return lambda step: step % n == 0


class DoEveryNSteps(DoWhen):
    def __init__(self, observer: Observer, n: int = 1):
        super().__init__(observer, every_n_step(n))
        self.n = n


class DoAtStep0(DoWhen):
    def __init__(self, observer: Observer):
        super().__init__(observer, lambda step: step == 0)


class CompositeObserver(ObserverBase):
    def __init__(self, observers: Iterable[Observer]):
        # nested composites are flattened so `a * b * c` holds three observers
        self.observers = [
            inner
            for obs in observers
            for inner in (
                obs.observers if isinstance(obs, CompositeObserver) else [obs]
            )
        ]

    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        for obs in self.observers:
            obs(step, exp, param, state)


class LossLogger(ObserverBase):
    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        logger.info(f"Step {step}: loss={float(state['loss']):.6f}")


class StepTimeLogger(ObserverBase):
    """Logs the mean wall time of a step once every ``n`` steps.

    The first call only starts the clock, so compilation of the first step is
    not counted.
    """

    def __init__(self, n: int = 100):
        self.n = n
        self.window_start: float | None = None
        self.steps_in_window = 0

    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        now = time.perf_counter()
        if self.window_start is None:
            self.window_start = now
            return

        self.steps_in_window += 1
        if self.steps_in_window < self.n:
            return

        mean = (now - self.window_start) / self.steps_in_window
        logger.info(f"Step {step}: {mean:.6f}s/step over {self.steps_in_window} steps")
        self.window_start, self.steps_in_window = now, 0


class AccuracyEvaluator(ObserverBase):
    """Logs the fraction of correct argmax predictions over ``dataset``.

    The learner's model runs in test mode. The last accuracy is kept in
    ``self.history`` as ``(step, accuracy)`` pairs.
    """

    def __init__(self, dataset: Iterable):
        self.dataset = dataset
        self.history = []

    def __call__(self, step: int, exp: "Experiment", param: Param, state: State):
        learner = exp.trainer.learner
        model = learner.model
        p = param["learner"]["model"]
        s = test_mode(state["learner"]["model"])

        n_correct, n_total = 0, 0
        for batch in self.dataset:
            x = jnp.asarray(batch[learner.feature_name])
            y = jnp.asarray(batch[learner.label_name])
            logits, _ = model(x, p, s)
            ŷ = jnp.argmax(logits, axis=-1)
            n_correct += (ŷ == y).sum().item()
            n_total += y.size
        acc = n_correct / n_total

        self.history.append((step, acc))
        logger.info(f"Accuracy at step {step}: {acc}")


def default_observer() -> CompositeObserver:
    return DoEveryNSteps(LossLogger(), n=10) * StepTimeLogger()
