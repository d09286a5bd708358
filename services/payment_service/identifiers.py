import random
import string

ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 6


class IdentifierGenerator:
    """
    Short, human-copyable order ids (e.g. 'K7Q2ZD').

    Drawn from a non-cryptographic source over a small space, so collisions are
    unlikely within one process but possible. Swap this class out if ids ever
    need to be globally unique.
    """

    def __init__(self, rng: random.Random | None = None, length: int = ORDER_ID_LENGTH):
        self._rng = rng or random.Random()
        self._length = length

    def next(self) -> str:
        return "".join(self._rng.choices(ALPHABET, k=self._length))
