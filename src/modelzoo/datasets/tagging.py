import grain
import numpy as np


class ToyTaggingSource(grain.sources.RandomAccessDataSource):
    """Random token sequences tagged with ``(x[t] + x[t-1]) % num_tags``.

    The first token is paired with an implicit ``0``, so every tag depends on
    the previous token and a per-token classifier cannot solve the task.
    """

    def __init__(
        self,
        num_samples: int = 4096,
        seq_len: int = 16,
        vocab_size: int = 32,
        num_tags: int = 4,
        seed: int = 0,
    ) -> None:
        rng = np.random.default_rng(seed)
        self.vocab_size = vocab_size
        self.num_tags = num_tags
        self._tokens = rng.integers(
            0, vocab_size, size=(num_samples, seq_len), dtype=np.int32
        )
        previous = np.pad(self._tokens[:, :-1], ((0, 0), (1, 0)))
        self._tags = ((self._tokens + previous) % num_tags).astype(np.int32)

    def __getitem__(self, index: int):
        return {"tokens": self._tokens[index], "tags": self._tags[index]}

    def __len__(self) -> int:
        return len(self._tokens)
