from .custodian import DevCustodian
from .keys import DomainKeyring

__all__ = ["DevCustodian", "DomainKeyring"]
