#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Modelo do registro de histórico de impressão
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from print_gateway.utils.filename_encoding import recover_filename


class HistoryStatus(Enum):
    """Resultado final de um envio de impressão"""
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


def format_file_size(size):
    """
    Formata um tamanho em bytes para leitura humana

    Args:
        size (int): Tamanho em bytes

    Returns:
        str: Tamanho formatado (ex: "1.5 KB")
    """
    if not size or size <= 0:
        return "0 Bytes"

    units = ['Bytes', 'KB', 'MB', 'GB']
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    value = round(value, 2)

    # 2.0 -> "2", 1.5 -> "1.5"
    if value == int(value):
        value = int(value)
    return f"{value} {units[index]}"


@dataclass
class HistoryRecord:
    """Registro persistido de um envio de impressão"""

    id: object
    filename: str
    printer: str
    printed_at: str
    status: HistoryStatus
    size: str
    user: str

    @classmethod
    def for_submission(cls, job_id, filename, printer, size_bytes, user, status=HistoryStatus.SUCCESS):
        """
        Cria o registro de histórico de um envio

        Args:
            job_id: ID do trabalho atribuído pelo servidor
            filename (str): Nome original do arquivo enviado
            printer (str): Nome da impressora
            size_bytes (int): Tamanho do arquivo em bytes
            user (str): Usuário que enviou
            status (HistoryStatus): Resultado do envio

        Returns:
            HistoryRecord: Novo registro
        """
        return cls(
            id=job_id,
            filename=recover_filename(filename),
            printer=printer,
            printed_at=datetime.now(timezone.utc).isoformat(),
            status=status,
            size=format_file_size(size_bytes),
            user=user,
        )

    def to_dict(self):
        """Converte para dicionário para armazenamento"""
        return {
            "id": self.id,
            "filename": self.filename,
            "printer": self.printer,
            "printedAt": self.printed_at,
            "status": self.status.value,
            "size": self.size,
            "user": self.user,
        }

    @classmethod
    def from_dict(cls, data):
        """
        Cria um registro a partir de um dicionário do arquivo de histórico

        Args:
            data (dict): Registro lido do arquivo

        Returns:
            HistoryRecord: Registro de histórico
        """
        status = HistoryStatus.SUCCESS
        for status_enum in HistoryStatus:
            if status_enum.value == data.get("status"):
                status = status_enum
                break

        return cls(
            id=data.get("id"),
            filename=data.get("filename", ""),
            printer=data.get("printer", ""),
            printed_at=data.get("printedAt", ""),
            status=status,
            size=data.get("size", "0 Bytes"),
            user=data.get("user", ""),
        )
