from tide_indexer.transfers.fetchers import (
    ExplorerTransferFetcher,
    FetchMethod,
    RpcTransferFetcher,
    TransferFetcher,
    build_fetcher,
)

__all__ = [
    "ExplorerTransferFetcher",
    "FetchMethod",
    "RpcTransferFetcher",
    "TransferFetcher",
    "build_fetcher",
]
