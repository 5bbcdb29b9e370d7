"""One service per business area, each built on :class:`BaseService`."""

from mpesa.services.account import AccountService
from mpesa.services.b2c import B2CService
from mpesa.services.base import BaseService, ErrorRule
from mpesa.services.c2b import C2BService
from mpesa.services.stk_push import StkPushService
from mpesa.services.transactions import TransactionService

__all__ = [
    "AccountService",
    "B2CService",
    "BaseService",
    "C2BService",
    "ErrorRule",
    "StkPushService",
    "TransactionService",
]
