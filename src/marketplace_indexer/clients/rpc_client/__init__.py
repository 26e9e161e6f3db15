"""JSON-RPC client for chain reads."""

from marketplace_indexer.clients.rpc_client.rpc_client import RpcClient

__all__ = ["RpcClient"]
