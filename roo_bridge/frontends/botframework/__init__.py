from .connector import ConnectorClient

__all__ = ["ConnectorClient"]
