"""Shared ownership of finished node values."""

from ._errors import ReferenceAccountingError


class Shared[T]:
    """A finished value together with a count of its holders.

    The node that produced the value is the first holder. Every consumer
    that reads the value while its own function runs takes another share and
    releases it afterwards. The count lets the evaluator prove at the end of
    a run that nothing but the output node still refers to the result.
    """

    __slots__ = ("_holders", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        self._holders = 1

    @property
    def holders(self) -> int:
        """Number of live holders."""
        return self._holders

    @property
    def value(self) -> T:
        """The held value, readable while any holder is alive."""
        if self._holders <= 0:
            msg = "Read of a shared value after its last holder released it"
            raise ReferenceAccountingError(msg)
        return self._value

    def share(self) -> T:
        """Take another share and return the value."""
        value = self.value
        self._holders += 1
        return value

    def release(self) -> None:
        """Drop one share."""
        if self._holders <= 0:
            msg = "Shared value released more often than it was shared"
            raise ReferenceAccountingError(msg)
        self._holders -= 1
        if self._holders == 0:
            del self._value

    def try_unwrap(self) -> T:
        """Take the value out, provided the caller is its only holder.

        Raises:
            ReferenceAccountingError: If any other holder is still alive.

        """
        if self._holders != 1:
            msg = f"Expected a uniquely owned value, found {self._holders} holders"
            raise ReferenceAccountingError(msg)
        value = self._value
        self.release()
        return value

    def __repr__(self) -> str:
        if self._holders <= 0:
            return "Shared(<released>)"
        return f"Shared({self._value!r}, holders={self._holders})"
