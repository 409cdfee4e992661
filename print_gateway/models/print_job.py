#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Modelo para trabalhos de impressão da fila do servidor
"""

from dataclasses import dataclass
from enum import Enum


class JobStatus(Enum):
    """Status possíveis para um trabalho de impressão"""
    PENDING = "pending"         # Aguardando processamento
    PROCESSING = "processing"   # Sendo processado
    COMPLETED = "completed"     # Concluído com sucesso
    CANCELLED = "cancelled"     # Cancelado
    ABORTED = "aborted"         # Abortado pelo servidor
    STOPPED = "stopped"         # Parado


@dataclass
class JobInfo:
    """Trabalho de impressão retornado pelo Get-Jobs"""

    id: int
    printer: str
    filename: str
    status: JobStatus
    submitted_at: str
    owner_user: str = "Unknown User"
    pages: int = 0

    def is_active(self):
        """Verifica se o trabalho ainda está na fila (pendente ou em processamento)"""
        return self.status in [JobStatus.PENDING, JobStatus.PROCESSING]

    def to_dict(self):
        """Converte para dicionário no formato da API"""
        return {
            "id": self.id,
            "printer": self.printer,
            "filename": self.filename,
            "name": self.filename,
            "status": self.status.value,
            "submittedAt": self.submitted_at,
            "ownerUser": self.owner_user,
            "pages": self.pages,
        }
