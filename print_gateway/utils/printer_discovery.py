#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Descoberta de impressoras no servidor CUPS

Nem todo servidor suporta CUPS-Get-Printers, então a descoberta percorre três
estratégias em ordem, cada uma só tentada se a anterior falhar ou não
encontrar nenhuma impressora:

1. CUPS-Get-Printers no servidor
2. Get-Printer-Attributes na URI do servidor (sem impressora)
3. Get-Printer-Attributes em cada nome de impressora candidato

A ordem é modelada como uma máquina de estados com a transição pura advance().
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from print_gateway.utils.ipp_client import TransportError, printer_uri, server_uri
from print_gateway.utils.ipp_normalizer import normalize_printer, printer_bags

logger = logging.getLogger("PrintGateway.Utils.PrinterDiscovery")

PRINTER_ATTRIBUTES = [
    "printer-name",
    "printer-state",
    "printer-state-message",
    "printer-is-accepting-jobs",
    "printer-location",
    "printer-make-and-model",
    "printer-uri-supported",
    "printer-info",
    "queued-job-count",
]


class DiscoveryStage(Enum):
    """Estratégias de descoberta, na ordem em que são tentadas"""
    BULK_QUERY = "cups-get-printers"
    DIRECT_QUERY = "get-printer-attributes"
    NAME_PROBE = "name-probe"


NEXT_STAGE = {
    DiscoveryStage.BULK_QUERY: DiscoveryStage.DIRECT_QUERY,
    DiscoveryStage.DIRECT_QUERY: DiscoveryStage.NAME_PROBE,
    DiscoveryStage.NAME_PROBE: None,
}


@dataclass
class StageOutcome:
    """Resultado de uma estratégia"""
    printers: List = field(default_factory=list)
    error: Optional[str] = None


def discovery_success(printers, stage):
    return {"success": True, "printers": printers, "source": stage.value}


def discovery_failure(message, error):
    return {"success": False, "message": message, "error": error}


def advance(stage, outcome):
    """
    Transição da máquina de estados da descoberta

    Args:
        stage (DiscoveryStage): Estratégia que acabou de rodar
        outcome (StageOutcome): Resultado dela

    Returns:
        DiscoveryStage | dict: Próxima estratégia ou o resultado final
    """
    if outcome.printers:
        return discovery_success(outcome.printers, stage)

    following = NEXT_STAGE[stage]
    if following is not None:
        return following

    return discovery_failure("Nenhuma impressora encontrada", outcome.error or "No printers found")


class PrinterDiscovery:
    """Descobre as impressoras de um servidor CUPS"""

    def __init__(self, app_config, transport):
        """
        Inicializa o descobridor de impressoras

        Args:
            app_config: Configuração da aplicação
            transport: Transporte IPP com execute(uri, operação, mensagem)
        """
        self.app_config = app_config
        self.transport = transport

    def _message(self):
        return {
            "operation-attributes-tag": {
                "requesting-user-name": self.app_config.get("cups_username") or "anonymous",
                "requested-attributes": list(PRINTER_ATTRIBUTES),
            }
        }

    @staticmethod
    def _parse(response, default_name=""):
        printers = []
        for bag in printer_bags(response.attributes):
            printer = normalize_printer(bag, default_name=default_name)
            if printer.name:
                printers.append(printer)
        return printers

    async def _bulk_query(self):
        """Estratégia 1: CUPS-Get-Printers"""
        base_url = self.app_config.cups_base_url
        try:
            response = await self.transport.execute(server_uri(base_url), "CUPS-Get-Printers", self._message())
        except TransportError as e:
            logger.error(f"Falha no CUPS-Get-Printers: {e}")
            return StageOutcome(error=str(e))

        if response.is_server_error:
            logger.warning(f"CUPS-Get-Printers não suportado ({response.status_code}), tentando método alternativo")
            return StageOutcome(error=response.status_code)

        return StageOutcome(printers=self._parse(response))

    async def _direct_query(self):
        """Estratégia 2: Get-Printer-Attributes na URI do servidor"""
        base_url = self.app_config.cups_base_url
        try:
            response = await self.transport.execute(server_uri(base_url), "Get-Printer-Attributes", self._message())
        except TransportError as e:
            logger.error(f"Método alternativo também falhou: {e}")
            return StageOutcome(error=str(e))

        if response.is_client_error or response.is_server_error:
            logger.warning(f"Get-Printer-Attributes retornou {response.status_code}, tentando nomes conhecidos")
            return StageOutcome(error=response.status_code)

        printers = self._parse(response)
        logger.info(f"Método alternativo encontrou {len(printers)} impressora(s)")
        return StageOutcome(printers=printers)

    async def _probe_names(self):
        """Estratégia 3: testa cada nome de impressora candidato"""
        base_url = self.app_config.cups_base_url
        found = []
        last_error = None

        for name in self.app_config.candidate_printers:
            try:
                response = await self.transport.execute(
                    printer_uri(base_url, name), "Get-Printer-Attributes", self._message()
                )
            except TransportError as e:
                logger.debug(f"Impressora {name} não respondeu: {e}")
                last_error = str(e)
                continue

            if not response.is_successful:
                logger.debug(f"Impressora {name} retornou {response.status_code}")
                last_error = response.status_code
                continue

            # Resposta sem atributos de impressora ainda confirma a existência do nome
            printers = self._parse(response, default_name=name) or [normalize_printer({}, default_name=name)]
            found.extend(printers)
            logger.info(f"Impressora encontrada: {name}")

        if not found:
            logger.warning("Nenhuma impressora encontrada pelos nomes conhecidos")
        return StageOutcome(printers=found, error=last_error)

    async def discover_printers(self):
        """
        Descobre as impressoras do servidor

        Returns:
            dict: {"success": True, "printers": [PrinterInfo], "source": str}
                  ou {"success": False, "message": str, "error": str}
        """
        strategies = {
            DiscoveryStage.BULK_QUERY: self._bulk_query,
            DiscoveryStage.DIRECT_QUERY: self._direct_query,
            DiscoveryStage.NAME_PROBE: self._probe_names,
        }

        state = DiscoveryStage.BULK_QUERY
        while isinstance(state, DiscoveryStage):
            logger.debug(f"Descoberta de impressoras: {state.value}")
            try:
                outcome = await strategies[state]()
            except Exception as e:
                # Uma estratégia nunca interrompe a cadeia
                logger.error(f"Erro inesperado na descoberta ({state.value}): {e}")
                outcome = StageOutcome(error=str(e))
            state = advance(state, outcome)

        if state["success"]:
            logger.info(f"Encontradas {len(state['printers'])} impressora(s) via {state['source']}")
        else:
            logger.warning(f"Descoberta de impressoras falhou: {state['error']}")
        return state
