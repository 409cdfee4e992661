#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Consulta e cancelamento de trabalhos de impressão no servidor CUPS
"""

import logging

from print_gateway.utils.ipp_client import TransportError, printer_uri, server_uri
from print_gateway.utils.ipp_normalizer import UNKNOWN_PRINTER, job_bags, normalize_job

logger = logging.getLogger("PrintGateway.Utils.JobQuery")

WHICH_JOBS_ALL = "all"
WHICH_JOBS_NOT_COMPLETED = "not-completed"
WHICH_JOBS = (WHICH_JOBS_ALL, WHICH_JOBS_NOT_COMPLETED)

JOB_ATTRIBUTES = [
    "job-id",
    "job-name",
    "job-state",
    "job-originating-user-name",
    "job-creation-time",
    "time-at-creation",
    "date-time-at-creation",
    "job-pages",
    "copies",
    "job-uri",
    "job-printer-uri",
    "printer-uri",
]


class JobQuery:
    """Lista e cancela trabalhos de impressão"""

    def __init__(self, app_config, transport):
        """
        Inicializa a consulta de trabalhos

        Args:
            app_config: Configuração da aplicação
            transport: Transporte IPP com execute(uri, operação, mensagem)
        """
        self.app_config = app_config
        self.transport = transport

    async def list_jobs(self, which=WHICH_JOBS_ALL, printer=None, shared_endpoint=False):
        """
        Lista os trabalhos do servidor ou de uma impressora

        Args:
            which (str): "all" ou "not-completed"
            printer (str, optional): Restringe a uma impressora
            shared_endpoint (bool): Consulta a URI do servidor mesmo com impressora
                definida, filtrando os trabalhos localmente pelo nome

        Returns:
            dict: {"success": True, "jobs": [JobInfo]} ou
                  {"success": False, "message": str, "error": str}
        """
        if which not in WHICH_JOBS:
            return {
                "success": False,
                "message": "Filtro de trabalhos inválido",
                "error": f"which-jobs deve ser um de {', '.join(WHICH_JOBS)}",
            }

        base_url = self.app_config.cups_base_url
        scoped_by_server = bool(printer) and not shared_endpoint
        target = printer_uri(base_url, printer) if scoped_by_server else server_uri(base_url)

        message = {
            "operation-attributes-tag": {
                "requesting-user-name": self.app_config.get("cups_username") or "anonymous",
                "which-jobs": which,
                "requested-attributes": list(JOB_ATTRIBUTES),
            }
        }

        try:
            response = await self.transport.execute(target, "Get-Jobs", message)
            response.raise_for_status()
        except TransportError as e:
            logger.error(f"Erro ao obter trabalhos de {target}: {e}")
            return {"success": False, "message": "Falha ao obter trabalhos de impressão", "error": str(e)}

        default_printer = printer if scoped_by_server else UNKNOWN_PRINTER
        # Na URI da impressora o dono do trabalho já é conhecido
        placeholder = None if scoped_by_server else self.app_config.job_printer_placeholder
        jobs = []
        for bag in job_bags(response.attributes):
            job = normalize_job(
                bag,
                default_printer=default_printer,
                placeholder=placeholder,
            )
            if job is not None:
                jobs.append(job)

        if printer and not scoped_by_server:
            jobs = [job for job in jobs if job.printer == printer]

        logger.info(f"Encontrados {len(jobs)} trabalho(s) em {target}")
        return {"success": True, "jobs": jobs}

    async def count_jobs(self, printer, which=WHICH_JOBS_NOT_COMPLETED):
        """
        Conta os trabalhos de uma impressora

        Returns:
            int: Quantidade de trabalhos

        Raises:
            TransportError: Se a consulta falhar
        """
        result = await self.list_jobs(which=which, printer=printer)
        if not result["success"]:
            raise TransportError(result["error"])
        return len(result["jobs"])

    async def cancel_job(self, job_id, printer, user):
        """
        Cancela um trabalho de impressão

        Args:
            job_id: ID do trabalho
            printer (str): Impressora dona do trabalho
            user (str): Usuário que solicitou o cancelamento

        Returns:
            dict: {"success": bool, "message": str[, "error": str]}
        """
        if not printer:
            return {"success": False, "message": "Informe o nome da impressora"}

        try:
            job_id = int(job_id)
        except (TypeError, ValueError):
            return {"success": False, "message": f"ID de trabalho inválido: {job_id}"}

        message = {
            "operation-attributes-tag": {
                "requesting-user-name": user,
                "job-id": job_id,
            }
        }

        target = printer_uri(self.app_config.cups_base_url, printer)
        try:
            response = await self.transport.execute(target, "Cancel-Job", message)
            response.raise_for_status()
        except TransportError as e:
            logger.error(f"Falha ao cancelar trabalho {job_id}: {e}")
            return {"success": False, "message": "Falha ao cancelar o trabalho", "error": str(e)}

        logger.info(f"Trabalho {job_id} cancelado em {printer} por {user}")
        return {"success": True, "message": "Trabalho cancelado"}
