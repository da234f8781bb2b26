from .block_range import BlockRange

__all__ = [
    "BlockRange",
]
