#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Modelo de impressora
"""

from dataclasses import dataclass
from enum import Enum


class PrinterState(Enum):
    """Estados possíveis de uma impressora no servidor CUPS"""
    IDLE = "idle"               # Pronta
    PROCESSING = "processing"   # Imprimindo
    STOPPED = "stopped"         # Parada
    UNKNOWN = "unknown"         # Estado não reconhecido


@dataclass
class PrinterInfo:
    """Impressora exposta pelo servidor de impressão"""

    name: str
    state: PrinterState = PrinterState.UNKNOWN
    is_accepting_jobs: bool = False
    location: str = ""
    model: str = ""
    info: str = ""
    queued_jobs: int = 0

    @property
    def is_online(self):
        """A impressora só é considerada offline quando está parada"""
        return self.state != PrinterState.STOPPED

    def to_dict(self):
        """
        Converte o modelo para dicionário

        Returns:
            dict: Representação da impressora no formato da API
        """
        return {
            "name": self.name,
            "state": self.state.value,
            "isOnline": self.is_online,
            "isAcceptingJobs": self.is_accepting_jobs,
            "location": self.location,
            "model": self.model,
            "info": self.info,
            "queuedJobs": self.queued_jobs,
        }

    def __str__(self):
        status = "Online" if self.is_online else "Parada"
        return f"PrinterInfo(name={self.name}, state={self.state.value}, status={status}, jobs={self.queued_jobs})"
