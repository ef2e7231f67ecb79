import jax

from .layers import (
    LSTM,
    BatchNorm,
    Chain,
    Conv,
    Dropout,
    Embedding,
    Linear,
    MaxPool,
    Rearrange,
)


def generator(latent_dim: int = 100) -> Chain:
    return Chain(
        Linear(in_dim=latent_dim, out_dim=256, activation=jax.nn.leaky_relu),
        BatchNorm(dim=256),
        Linear(in_dim=256, out_dim=512, activation=jax.nn.leaky_relu),
        BatchNorm(dim=512),
        Linear(in_dim=512, out_dim=1024, activation=jax.nn.leaky_relu),
        BatchNorm(dim=1024),
        Linear(in_dim=1024, out_dim=784, activation=jax.nn.tanh),
        Rearrange(pattern="b (h w) -> b h w", sizes={"h": 28}),
    )


def discriminator() -> Chain:
    return Chain(
        Rearrange(pattern="b h w -> b (h w)"),
        Linear(in_dim=784, out_dim=512, activation=jax.nn.tanh),
        Linear(in_dim=512, out_dim=256, activation=jax.nn.tanh),
        Linear(in_dim=256, out_dim=1, activation=jax.nn.sigmoid),
    )


def cnn_classifier(num_classes: int = 10, dropout: float = 0.5) -> Chain:
    return Chain(
        Rearrange(pattern="b h w -> b h w 1"),
        Conv(in_channels=1, out_channels=32, activation=jax.nn.relu),
        MaxPool(window=(2, 2)),
        Conv(in_channels=32, out_channels=64, activation=jax.nn.relu),
        MaxPool(window=(2, 2)),
        Rearrange(pattern="b h w c -> b (h w c)"),
        Dropout(rate=dropout),
        Linear(in_dim=7 * 7 * 64, out_dim=num_classes),
    )


def lstm_tagger(
    vocab_size: int,
    num_tags: int,
    embedding_dim: int = 32,
    hidden_dim: int = 64,
) -> Chain:
    return Chain(
        emb=Embedding(in_dim=vocab_size, out_dim=embedding_dim),
        lstm=LSTM(in_dim=embedding_dim, hidden_dim=hidden_dim),
        head=Linear(in_dim=hidden_dim, out_dim=num_tags),
    )


def autoencoder(latent_dim: int = 32) -> Chain:
    return Chain(
        encoder=Chain(
            Rearrange(pattern="b h w -> b (h w)"),
            Linear(in_dim=784, out_dim=128, activation=jax.nn.relu),
            Linear(in_dim=128, out_dim=latent_dim, activation=jax.nn.relu),
        ),
        decoder=Chain(
            Linear(in_dim=latent_dim, out_dim=128, activation=jax.nn.relu),
            Linear(in_dim=128, out_dim=784, activation=jax.nn.sigmoid),
            Rearrange(pattern="b (h w) -> b h w", sizes={"h": 28}),
        ),
    )
