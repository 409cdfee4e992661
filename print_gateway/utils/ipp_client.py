#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Cliente IPP usado para conversar com o servidor CUPS

Expõe uma primitiva única, execute(uri, operação, mensagem), implementada sobre
o pyipp. O restante do sistema depende apenas dessa primitiva, o que permite
substituí-la por um transporte falso nos testes.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from urllib.parse import quote, urlsplit

import aiohttp
from pyipp import IPP
from pyipp.enums import IppOperation
from pyipp.exceptions import IPPConnectionUpgradeRequired, IPPError
from pyipp.parser import parse as parse_response

logger = logging.getLogger("PrintGateway.Utils.IppClient")

DEFAULT_IPP_TIMEOUT = 15

OPERATIONS = {
    "CUPS-Get-Printers": IppOperation.CUPS_GET_PRINTERS,
    "Get-Printer-Attributes": IppOperation.GET_PRINTER_ATTRIBUTES,
    "Get-Jobs": IppOperation.GET_JOBS,
    "Print-Job": IppOperation.PRINT_JOB,
    "Cancel-Job": IppOperation.CANCEL_JOB,
}

# RFC 8011 / CUPS
STATUS_NAMES = {
    0x0000: "successful-ok",
    0x0001: "successful-ok-ignored-or-substituted-attributes",
    0x0002: "successful-ok-conflicting-attributes",
    0x0400: "client-error-bad-request",
    0x0401: "client-error-forbidden",
    0x0402: "client-error-not-authenticated",
    0x0403: "client-error-not-authorized",
    0x0404: "client-error-not-possible",
    0x0405: "client-error-timeout",
    0x0406: "client-error-not-found",
    0x0407: "client-error-gone",
    0x0408: "client-error-request-entity-too-large",
    0x040A: "client-error-document-format-not-supported",
    0x040B: "client-error-attributes-or-values-not-supported",
    0x0500: "server-error-internal-error",
    0x0501: "server-error-operation-not-supported",
    0x0502: "server-error-service-unavailable",
    0x0503: "server-error-version-not-supported",
    0x0504: "server-error-device-error",
    0x0505: "server-error-temporary-error",
    0x0506: "server-error-not-accepting-jobs",
    0x0507: "server-error-busy",
    0x0508: "server-error-job-canceled",
}

GROUP_OPERATION = "operation-attributes-tag"
GROUP_PRINTER = "printer-attributes-tag"
GROUP_JOB = "job-attributes-tag"


class TransportError(Exception):
    """Falha de rede, timeout ou resposta ilegível do servidor de impressão"""
    pass


class ProtocolStatusError(TransportError):
    """O servidor respondeu, mas com status de erro IPP"""

    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


def status_name(code):
    """
    Converte um status-code numérico em seu nome IPP

    Args:
        code: Código numérico ou já textual

    Returns:
        str: Nome do status (ex: "successful-ok")
    """
    if isinstance(code, str):
        return code
    if not isinstance(code, int):
        return "unknown"
    if code in STATUS_NAMES:
        return STATUS_NAMES[code]
    if code < 0x0100:
        return f"successful-ok-0x{code:04x}"
    if 0x0400 <= code < 0x0500:
        return f"client-error-0x{code:04x}"
    if 0x0500 <= code < 0x0600:
        return f"server-error-0x{code:04x}"
    return f"unknown-0x{code:04x}"


@dataclass
class IppResponse:
    """Resposta de uma operação IPP já decodificada"""

    status_code: str
    attributes: dict = field(default_factory=dict)

    @property
    def is_successful(self):
        return self.status_code.startswith("successful-ok")

    @property
    def is_client_error(self):
        return self.status_code.startswith("client-error-")

    @property
    def is_server_error(self):
        return self.status_code.startswith("server-error-")

    def raise_for_status(self):
        """Lança ProtocolStatusError se o servidor sinalizou erro"""
        if self.is_client_error or self.is_server_error:
            raise ProtocolStatusError(f"Servidor IPP retornou {self.status_code}", self.status_code)
        return self


def server_uri(base_url):
    """
    Obtém a URI do servidor sem caminho de impressora

    Args:
        base_url (str): URL base do CUPS (ex: http://host:631/qualquer)

    Returns:
        str: Origem da URL (ex: http://host:631)
    """
    parts = urlsplit(base_url)
    return f"{parts.scheme}://{parts.netloc}"


def printer_uri(base_url, printer_name):
    """Monta a URI de uma impressora específica no CUPS"""
    return f"{server_uri(base_url)}/printers/{quote(printer_name, safe='')}"


class PyippTransport:
    """Transporte IPP sobre pyipp/aiohttp, um cliente por chamada"""

    def __init__(self, username="", password="", timeout=DEFAULT_IPP_TIMEOUT):
        """
        Inicializa o transporte

        Args:
            username (str): Usuário para autenticação básica no CUPS
            password (str): Senha para autenticação básica no CUPS
            timeout (float): Tempo máximo de cada chamada em segundos
        """
        self.username = username or None
        self.password = password or None
        self.timeout = timeout

    @classmethod
    def from_config(cls, app_config):
        """Cria o transporte a partir da configuração da aplicação"""
        return cls(
            username=app_config.get("cups_username", ""),
            password=app_config.get("cups_password", ""),
            timeout=app_config.get("ipp_timeout", DEFAULT_IPP_TIMEOUT),
        )

    def _build_client(self, target_uri, tls=None):
        parts = urlsplit(target_uri)
        if tls is None:
            tls = parts.scheme in ("https", "ipps")
        default_port = 443 if parts.scheme == "https" else 631

        # Só envia credenciais quando ambas estão configuradas
        credentials = {}
        if self.username and self.password:
            credentials = {"username": self.username, "password": self.password}

        return IPP(
            host=parts.hostname,
            port=parts.port or default_port,
            base_path=parts.path or "/",
            tls=tls,
            request_timeout=max(1, math.ceil(self.timeout)),
            **credentials,
        )

    async def execute(self, target_uri, operation, message, _tls=None):
        """
        Executa uma operação IPP

        Args:
            target_uri (str): URI do servidor ou da impressora
            operation (str): Nome da operação (ex: "Get-Jobs")
            message (dict): Grupos de atributos e, opcionalmente, "data"

        Returns:
            IppResponse: Resposta decodificada

        Raises:
            TransportError: Falha de conexão, timeout ou resposta inválida
        """
        ipp_operation = OPERATIONS.get(operation)
        if ipp_operation is None:
            raise TransportError(f"Operação IPP não suportada: {operation}")

        client = self._build_client(target_uri, tls=_tls)
        logger.debug(f"{operation} -> {target_uri}")

        try:
            raw = await asyncio.wait_for(client.raw(ipp_operation, message), timeout=self.timeout)
            parsed = parse_response(raw)
        except IPPConnectionUpgradeRequired:
            if _tls is None and not client.tls:
                logger.warning(f"Servidor exige TLS, repetindo {operation} com TLS: {target_uri}")
                return await self.execute(target_uri, operation, message, _tls=True)
            raise TransportError(f"Servidor exige TLS: {target_uri}")
        except asyncio.TimeoutError:
            raise TransportError(f"Timeout IPP ({self.timeout}s) em {operation}: {target_uri}")
        except (IPPError, aiohttp.ClientError, OSError) as e:
            raise TransportError(f"Erro IPP em {operation}: {e}") from e
        except Exception as e:
            # Falhas do parser binário aparecem como struct.error/IndexError
            raise TransportError(f"Resposta IPP inválida em {operation}: {e}") from e
        finally:
            await client.close()

        return IppResponse(
            status_code=status_name(parsed.get("status-code")),
            attributes={
                GROUP_OPERATION: parsed.get("operation-attributes", {}),
                GROUP_PRINTER: parsed.get("printers", []),
                GROUP_JOB: parsed.get("jobs", []),
            },
        )
