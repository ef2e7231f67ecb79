import optax


def sgd(learning_rate: float) -> optax.GradientTransformation:
    return optax.sgd(learning_rate)


def adam(
    learning_rate: float, centralize: bool = False, **kwargs
) -> optax.GradientTransformation:
    # centralization must see the raw gradients
    if centralize:
        return optax.chain(optax.centralize(), optax.adam(learning_rate, **kwargs))
    return optax.adam(learning_rate, **kwargs)
