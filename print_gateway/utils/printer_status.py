#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Status das impressoras com a contagem de trabalhos em andamento
"""

import asyncio
import logging

from print_gateway.utils.job_query import WHICH_JOBS_NOT_COMPLETED

logger = logging.getLogger("PrintGateway.Utils.PrinterStatus")


class PrinterStatus:
    """Combina a descoberta de impressoras com a contagem de trabalhos de cada uma"""

    def __init__(self, discovery, job_query):
        """
        Args:
            discovery (PrinterDiscovery): Descoberta de impressoras
            job_query (JobQuery): Consulta de trabalhos
        """
        self.discovery = discovery
        self.job_query = job_query

    async def _live_count(self, printer):
        try:
            printer.queued_jobs = await self.job_query.count_jobs(printer.name, which=WHICH_JOBS_NOT_COMPLETED)
        except Exception as e:
            logger.error(f"Erro ao obter trabalhos da impressora {printer.name}: {e}")
            printer.queued_jobs = 0
        return printer

    async def get_status(self):
        """
        Obtém as impressoras com a quantidade atual de trabalhos não concluídos

        A contagem consultada substitui o queued-job-count informado na
        descoberta. Falha numa impressora zera só a contagem dela.

        Returns:
            dict: {"success": True, "printers": [PrinterInfo]} ou o erro da descoberta
        """
        result = await self.discovery.discover_printers()
        if not result["success"]:
            return result

        printers = await asyncio.gather(*(self._live_count(p) for p in result["printers"]))
        return {"success": True, "printers": list(printers)}
