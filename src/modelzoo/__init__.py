from .base import PRNG, FrozenDict, Param, PyTree, State, dispatch
from .core import LayerBase, LayerLike, Learner, Trainer
from .experiment import Experiment, run
from .gan import GAN
from .layers import (
    LSTM,
    BatchNorm,
    Chain,
    Conv,
    Dropout,
    Embedding,
    F,
    Linear,
    MaxPool,
    NamedLayers,
    Rearrange,
    test_mode,
    to_layer,
    train_mode,
)
from .losses import binary_cross_entropy

__all__ = [
    # base
    "PRNG",
    "FrozenDict",
    "Param",
    "PyTree",
    "State",
    "dispatch",
    # core
    "LayerBase",
    "LayerLike",
    "Learner",
    "Trainer",
    # experiment
    "Experiment",
    "run",
    # gan
    "GAN",
    # layers
    "LSTM",
    "BatchNorm",
    "Chain",
    "Conv",
    "Dropout",
    "Embedding",
    "F",
    "Linear",
    "MaxPool",
    "NamedLayers",
    "Rearrange",
    "test_mode",
    "to_layer",
    "train_mode",
    # losses
    "binary_cross_entropy",
]
