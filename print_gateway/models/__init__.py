"""
Pacote de modelos da aplicação
"""

from .printer import PrinterInfo, PrinterState
from .print_job import JobInfo, JobStatus
from .history import HistoryRecord, HistoryStatus

__all__ = ['PrinterInfo', 'PrinterState', 'JobInfo', 'JobStatus', 'HistoryRecord', 'HistoryStatus']
