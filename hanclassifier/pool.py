from typing import List

from .tokens_encoder import TokensEncoder


class TokensEncodersPool:
    """
    A pool of TokensEncoder instances built from the same model.

    An instance is not reentrant, so each sentence of a batch gets its own one.
    All the instances are released together before the next batch and then
    reused.
    """

    def __init__(self, model):
        self.model = model
        self._items: List[TokensEncoder] = []
        self._in_use = 0

    @property
    def size(self) -> int:
        return len(self._items)

    @property
    def in_use(self) -> int:
        return self._in_use

    def get_item(self) -> TokensEncoder:
        if self._in_use == len(self._items):
            self._items.append(self.model.build_encoder(id=len(self._items)))

        item = self._items[self._in_use]
        self._in_use += 1
        return item

    def release_all(self):
        self._in_use = 0

    def get_encoders(self, size: int) -> List[TokensEncoder]:
        self.release_all()
        return [self.get_item() for _ in range(size)]
