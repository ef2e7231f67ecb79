import numpy as np

from modelzoo.datasets import ToyTaggingSource


def test_tags_depend_on_previous_token():
    source = ToyTaggingSource(num_samples=8, seq_len=5, vocab_size=10, num_tags=3)
    assert len(source) == 8

    item = source[2]
    tokens, tags = item["tokens"], item["tags"]
    assert tokens.shape == tags.shape == (5,)
    assert tags[0] == tokens[0] % 3
    np.testing.assert_array_equal(tags[1:], (tokens[1:] + tokens[:-1]) % 3)


def test_seed_is_deterministic():
    a = ToyTaggingSource(num_samples=4, seed=3)
    b = ToyTaggingSource(num_samples=4, seed=3)
    np.testing.assert_array_equal(a[1]["tokens"], b[1]["tokens"])
