from tide_indexer.utils.blockchain import (
    explorer_address_url,
    explorer_tx_url,
    pad_address,
    parse_optional_quantity,
    parse_quantity,
)

__all__ = [
    "pad_address",
    "parse_quantity",
    "parse_optional_quantity",
    "explorer_address_url",
    "explorer_tx_url",
]
