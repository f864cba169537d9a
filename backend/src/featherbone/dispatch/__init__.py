"""Transactional request dispatch.

Usage:
    from featherbone.dispatch import Dispatcher, Request

    dispatcher = Dispatcher(catalog, registry, connections, executor)
    rows = await dispatcher.dispatch(Request(method="GET", name="Invoice", user="alice"))
"""

from featherbone.dispatch.dispatcher import Dispatcher
from featherbone.dispatch.transaction import TransactionWrapper
from featherbone.dispatch.traversal import TriggerTraversal
from featherbone.dispatch.types import Request

__all__ = ["Dispatcher", "Request", "TransactionWrapper", "TriggerTraversal"]
