"""SplitLedger: общий учёт расходов и взаиморасчётов."""

__version__ = "0.1.0"
