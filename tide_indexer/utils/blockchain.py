from typing import Any, Optional, Union

from eth_utils import to_checksum_address

from tide_indexer.shared.constants import ChainConstants, Network


def pad_address(address: str) -> str:
    """Pad an Ethereum address to a 32-byte topic"""
    # Remove the '0x' prefix
    address = address[2:] if address[:2].lower() == "0x" else address
    # Pad the address to 64 characters with zeros
    return "0x" + address.lower().zfill(64)


def parse_quantity(value: Any) -> int:
    """
    Parse a block number / timestamp / index as returned by explorers or RPC.

    Accepts native ints, "0x"-prefixed hex strings and decimal strings.

    Raises:
        ValueError: If the value cannot be interpreted as an integer
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            return int(text, 16) if len(text) > 2 else 0
        return int(text)
    raise ValueError(f"Not a quantity: {value!r}")


def parse_optional_quantity(value: Any) -> Optional[int]:
    """Like parse_quantity, but None and empty strings map to None"""
    if value is None or value == "":
        return None
    return parse_quantity(value)


def explorer_address_url(network: Union[str, Network], address: str) -> str:
    base = ChainConstants.get_explorer_public_url(network)
    return f"{base}/address/{to_checksum_address(address)}"


def explorer_tx_url(network: Union[str, Network], tx_hash: str) -> str:
    base = ChainConstants.get_explorer_public_url(network)
    return f"{base}/tx/{tx_hash}"
