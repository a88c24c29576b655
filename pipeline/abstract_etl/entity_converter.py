from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

RecordT = TypeVar("RecordT")
EntityT = TypeVar("EntityT")


class EntityConverter(ABC, Generic[RecordT, EntityT]):
    """
    Abstract base class for mapping a parsed record to a persistence entity.

    Converters build transient entities only; persisting and linking them is the
    importer's job.
    """

    @abstractmethod
    def convert(self, record: RecordT) -> EntityT:
        """
        Maps a typed record to a new, unsaved entity.

        Args:
            record (RecordT): The parsed record.

        Returns:
            EntityT: The transient entity.

        Raises:
            NotImplementedError: If not implemented in child classes.
        """
        raise NotImplementedError("Subclasses must implement this method.")

    @staticmethod
    def normalize_text(value: Any) -> Any:
        """
        Collapses runs of whitespace in free text fields; blank strings become None.

        Args:
            value (Any): Raw field value.

        Returns:
            Any: The normalized value, or the input unchanged when it is not a string.
        """
        if not isinstance(value, str):
            return value
        collapsed = " ".join(value.split())
        return collapsed or None
