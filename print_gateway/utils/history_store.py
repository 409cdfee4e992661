#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Histórico de impressão persistido em arquivo JSON
"""

import os
import json
import logging
import threading

from print_gateway.models.history import HistoryRecord

logger = logging.getLogger("PrintGateway.Utils.HistoryStore")

HISTORY_PAGE_SIZE = 50


class HistoryStore:
    """Registro de envios, do mais recente para o mais antigo"""

    def __init__(self, history_file, max_records=500):
        """
        Args:
            history_file (str): Caminho do arquivo JSON
            max_records (int): Quantidade máxima de registros mantidos
        """
        self.history_file = history_file
        self.max_records = max_records
        # Leitura-modificação-escrita do arquivo precisa ser exclusiva
        self._lock = threading.Lock()

    def _read(self):
        try:
            if not os.path.exists(self.history_file):
                return []
            with open(self.history_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, list):
                logger.warning(f"Histórico com formato inesperado, ignorando: {self.history_file}")
                return []
            return data
        except (OSError, ValueError) as e:
            logger.error(f"Erro ao ler histórico: {str(e)}")
            return []

    def _write(self, history):
        try:
            os.makedirs(os.path.dirname(self.history_file) or ".", exist_ok=True)
            with open(self.history_file, 'w', encoding='utf-8') as f:
                json.dump(history, f, indent=2, ensure_ascii=False)
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Erro ao salvar histórico: {str(e)}")
            return False

    def append(self, record):
        """
        Adiciona um registro no início do histórico

        Args:
            record (HistoryRecord): Registro a adicionar

        Returns:
            bool: True se salvo com sucesso
        """
        with self._lock:
            history = self._read()
            history.insert(0, record.to_dict())
            return self._write(history[:self.max_records])

    def update_status(self, job_id, status):
        """
        Atualiza o status de um registro existente

        Args:
            job_id: ID do trabalho
            status (HistoryStatus): Novo status

        Returns:
            bool: True se o registro foi encontrado e salvo
        """
        with self._lock:
            history = self._read()
            for entry in history:
                if str(entry.get("id")) == str(job_id):
                    entry["status"] = status.value
                    return self._write(history)
            return False

    def list(self, limit=HISTORY_PAGE_SIZE):
        """
        Obtém os registros mais recentes

        Returns:
            list: Lista de HistoryRecord, no máximo `limit`
        """
        with self._lock:
            history = self._read()
        return [HistoryRecord.from_dict(entry) for entry in history[:limit] if isinstance(entry, dict)]
