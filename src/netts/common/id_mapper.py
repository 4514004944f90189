"""
ID mapping between event identifiers and NetworkIt node IDs.

NetworkIt requires consecutive integer node IDs starting from 0, while event
logs name the interacting parties with arbitrary identifiers (strings,
integers, ...). Every graph snapshot carries its own mapper.
"""

from typing import Any, Dict, Iterable, List


class IDMapper:
    """
    Bidirectional mapping between original and internal node IDs.

    Attributes
    ----------
    original_to_internal : Dict[Any, int]
        Maps original identifiers to NetworkIt node IDs (0, 1, 2, ...)
    internal_to_original : Dict[int, Any]
        Maps NetworkIt node IDs back to original identifiers

    Examples
    --------
    >>> mapper = IDMapper.from_ids(["B", "A"])
    >>> mapper.get_internal("A")
    0
    >>> mapper.get_original(1)
    'B'
    """

    def __init__(self) -> None:
        self.original_to_internal: Dict[Any, int] = {}
        self.internal_to_original: Dict[int, Any] = {}

    @classmethod
    def from_ids(cls, original_ids: Iterable[Any]) -> "IDMapper":
        """
        Build a mapper over a set of identifiers.

        Identifiers are de-duplicated and sorted by their string form so that
        the same node set always yields the same internal IDs.
        """
        mapper = cls()
        for internal_id, original_id in enumerate(sorted(set(original_ids), key=str)):
            mapper.add_mapping(original_id, internal_id)
        return mapper

    def get_internal(self, original_id: Any) -> int:
        """
        Get the NetworkIt ID for an original identifier.

        Raises
        ------
        KeyError
            If original_id is not found in the mapping
        """
        try:
            return self.original_to_internal[original_id]
        except KeyError:
            raise KeyError(f"Original ID '{original_id}' not found in mapping")

    def get_original(self, internal_id: int) -> Any:
        """
        Get the original identifier for a NetworkIt ID.

        Raises
        ------
        KeyError
            If internal_id is not found in the mapping
        TypeError
            If internal_id is not an integer
        """
        if not isinstance(internal_id, int):
            raise TypeError(f"Internal ID must be integer, got {type(internal_id)}")

        try:
            return self.internal_to_original[internal_id]
        except KeyError:
            raise KeyError(f"Internal ID {internal_id} not found in mapping")

    def get_original_batch(self, internal_ids: List[int]) -> List[Any]:
        """Get original identifiers for several NetworkIt IDs."""
        return [self.get_original(internal_id) for internal_id in internal_ids]

    def add_mapping(self, original_id: Any, internal_id: int) -> None:
        """
        Add a bidirectional mapping.

        Raises
        ------
        ValueError
            If either side is already mapped to a different value
        """
        existing_internal = self.original_to_internal.get(original_id)
        if existing_internal is not None and existing_internal != internal_id:
            raise ValueError(
                f"Original ID '{original_id}' already mapped to {existing_internal}"
            )

        existing_original = self.internal_to_original.get(internal_id)
        if internal_id in self.internal_to_original and existing_original != original_id:
            raise ValueError(
                f"Internal ID {internal_id} already mapped to '{existing_original}'"
            )

        self.original_to_internal[original_id] = internal_id
        self.internal_to_original[internal_id] = original_id

    def original_ids(self) -> List[Any]:
        """Original identifiers ordered by internal ID."""
        return [self.internal_to_original[i] for i in range(len(self.internal_to_original))]

    def size(self) -> int:
        """Number of mapped nodes."""
        return len(self.original_to_internal)

    def is_empty(self) -> bool:
        return not self.original_to_internal

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, item: Any) -> bool:
        return item in self.original_to_internal

    def __repr__(self) -> str:
        return f"IDMapper(size={self.size()})"
