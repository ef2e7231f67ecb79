from typing import Any, TypeAlias

import plum
from jax import Array
from pydantic import ConfigDict, RootModel

PRNG: TypeAlias = Array
PyTree: TypeAlias = Any
Param: TypeAlias = dict
State: TypeAlias = dict

dispatch = plum.Dispatcher(warn_redefinition=True)


class FrozenDict(RootModel[dict[str, Any]]):
    """Read-only mapping that can sit in a layer field.

    Layers are static arguments to ``jit``, so anything they hold has to hash.
    Values must be hashable themselves.
    """

    model_config = ConfigDict(frozen=True)

    def __getitem__(self, key: str) -> Any:
        return self.root[key]

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def keys(self):
        return self.root.keys()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.root.items())))
