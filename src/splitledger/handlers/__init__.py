from splitledger.handlers.basic import basic_router
from splitledger.handlers.expenses import expenses_router
from splitledger.handlers.ledger import ledger_router
from splitledger.handlers.payments import payments_router

__all__ = ["basic_router", "expenses_router", "ledger_router", "payments_router"]
