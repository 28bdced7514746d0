from refbundle.api_clients.base import BiomartClient

__all__ = ["BiomartClient"]
