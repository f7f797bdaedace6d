import uuid
from typing import Protocol


class IIDGenerator(Protocol):
    """
    Protocol for record identifier strategies.
    Adapters call ``next_id()`` once per record that arrives without an ``id``.
    """

    def next_id(self) -> str:
        """Generates the next unique identifier."""
        ...


class UUID4Generator(IIDGenerator):
    """
    Default ID generator using UUIDv4.
    Zero external dependencies.
    """

    def next_id(self) -> str:
        """Returns a string representation of a random UUIDv4."""
        return str(uuid.uuid4())


_DEFAULT_GENERATOR = UUID4Generator()


def new_id() -> str:
    """Return a fresh globally unique record id."""
    return _DEFAULT_GENERATOR.next_id()
