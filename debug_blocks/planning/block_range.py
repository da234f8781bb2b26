from dataclasses import dataclass
from typing import Iterator

from debug_blocks.errors import InvalidArgument


def require_non_negative_int(name: str, value) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class BlockRange:
    """
    Closed-open block range [start, start + count).

    count == 0 is a valid, empty range.
    """
    start: int
    count: int

    def __post_init__(self):
        require_non_negative_int("start_block", self.start)
        require_non_negative_int("num_blocks", self.count)

    @property
    def end(self) -> int:
        """Exclusive upper bound."""
        return self.start + self.count

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    def __len__(self) -> int:
        return self.count

    def __contains__(self, block) -> bool:
        return self.start <= block < self.end
