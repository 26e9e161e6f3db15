"""HTTP and JSON-RPC clients."""

from marketplace_indexer.clients.http import AsyncHttpClient
from marketplace_indexer.clients.rpc_client import RpcClient

__all__ = [
    "AsyncHttpClient",
    "RpcClient",
]
