from .sales import Sale, SaleItem
from .expenses import Expense, Refund
from .credits import CreditAccount, CreditPayment
from .cash_cuts import CashCut
from .ledger import LedgerEvent

__all__ = [
    'Sale', 'SaleItem',
    'Expense', 'Refund',
    'CreditAccount', 'CreditPayment',
    'CashCut',
    'LedgerEvent',
]
