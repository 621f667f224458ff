"""Diameter transaction analysis subsystem."""
from .connection import connection_endpoints, connection_id
from .correlator import ConnectionTransactions, TransactionCorrelator
from .engine import AnalysisContext, AnalysisEngine, result_code_of
from .models import AnalysisReport

__all__ = [
    'connection_id',
    'connection_endpoints',
    'ConnectionTransactions',
    'TransactionCorrelator',
    'AnalysisEngine',
    'AnalysisContext',
    'result_code_of',
    'AnalysisReport',
]
