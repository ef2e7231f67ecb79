from .experiment import Experiment
from .observers import (
    AccuracyEvaluator,
    CompositeObserver,
    DoAtStep0,
    DoEveryNSteps,
    DoWhen,
    LossLogger,
    Observer,
    ObserverBase,
    StepTimeLogger,
    default_observer,
    every_n_step,
)
from .run import run

__all__ = [
    "Experiment",
    "AccuracyEvaluator",
    "CompositeObserver",
    "DoAtStep0",
    "DoEveryNSteps",
    "DoWhen",
    "LossLogger",
    "Observer",
    "ObserverBase",
    "StepTimeLogger",
    "default_observer",
    "every_n_step",
    "run",
]
