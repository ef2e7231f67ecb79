import jax.numpy as jnp
from jax import Array


def binary_cross_entropy(preds: Array, targets: Array, eps: float = 1e-7) -> Array:
    """Element-wise binary cross entropy on probabilities, e.g. sigmoid outputs."""
    preds = jnp.clip(preds, eps, 1 - eps)
    targets = targets.astype(preds.dtype)
    return -(targets * jnp.log(preds) + (1 - targets) * jnp.log1p(-preds))
