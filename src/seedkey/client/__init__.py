from .api import ApiClient
from .sdk import SeedKey
from .transport import CorrelatedTransport

__all__ = ["ApiClient", "CorrelatedTransport", "SeedKey"]
