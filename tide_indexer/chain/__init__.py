from tide_indexer.chain.time_mapper import (
    ChainTimeMapper,
    get_fuzzy_block_number_from_timestamp,
    get_fuzzy_timestamp_from_block_number,
)

__all__ = [
    "ChainTimeMapper",
    "get_fuzzy_block_number_from_timestamp",
    "get_fuzzy_timestamp_from_block_number",
]
