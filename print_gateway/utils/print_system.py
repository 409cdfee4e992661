#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Envio de documentos para impressão via Print-Job
"""

import logging
import time

from print_gateway.utils.filename_encoding import recover_filename
from print_gateway.utils.ipp_client import GROUP_JOB, GROUP_OPERATION, TransportError, printer_uri
from print_gateway.utils.ipp_normalizer import attribute_groups, flatten_attributes

logger = logging.getLogger("PrintGateway.Utils.PrintSystem")

GENERIC_DOCUMENT_FORMAT = "application/octet-stream"

# (assinatura, deslocamento, tipo MIME) na ordem em que são testadas
SIGNATURES = [
    (b'%PDF-', 0, "application/pdf"),
    (b'%!PS', 0, "application/postscript"),
    (b'\xFF\xD8\xFF', 0, "image/jpeg"),
    (b'\x89PNG\r\n\x1a\n', 0, "image/png"),
    (b'GIF87a', 0, "image/gif"),
    (b'GIF89a', 0, "image/gif"),
    (b'II*\x00', 0, "image/tiff"),
    (b'MM\x00*', 0, "image/tiff"),
    (b'BM', 0, "image/bmp"),
    (b'{\\rtf', 0, "application/rtf"),
    (b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1', 0, "application/msword"),
]

ZIP_SIGNATURE = b'PK\x03\x04'
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ValidationError(Exception):
    """Dados de entrada inválidos fornecidos pelo chamador"""
    pass


def sniff_document_format(data):
    """
    Identifica o tipo do documento pelas assinaturas dos primeiros bytes

    Args:
        data (bytes): Conteúdo do arquivo

    Returns:
        str: Tipo MIME, ou None se não reconhecido
    """
    if not data:
        return None

    head = data[:4096]
    for signature, offset, mime in SIGNATURES:
        if head[offset:offset + len(signature)] == signature:
            return mime

    if head.startswith(ZIP_SIGNATURE):
        # Documentos OOXML são ZIPs com o diretório word/
        if b'word/' in data[:65536]:
            return DOCX_MIME
        return "application/zip"

    return None


def parse_copies(copies):
    """
    Valida o número de cópias

    Raises:
        ValidationError: Se não for um inteiro positivo
    """
    if copies is None or copies == "":
        return 1
    try:
        value = int(copies)
    except (TypeError, ValueError):
        raise ValidationError(f"Número de cópias inválido: {copies}")
    if value < 1:
        raise ValidationError(f"Número de cópias inválido: {copies}")
    return value


class PrintSystem:
    """Envia documentos para as impressoras do servidor CUPS"""

    def __init__(self, app_config, transport):
        """
        Inicializa o sistema de impressão

        Args:
            app_config: Configuração da aplicação
            transport: Transporte IPP com execute(uri, operação, mensagem)
        """
        self.app_config = app_config
        self.transport = transport

    def resolve_document_format(self, data):
        """
        Determina o document-format enviado à impressora

        Formatos fora da lista suportada são enviados como octet-stream em vez
        de rejeitados; a impressora ainda pode conseguir processá-los.
        """
        sniffed = sniff_document_format(data)
        supported = self.app_config.get("supported_document_formats", [])
        if sniffed in supported:
            return sniffed

        if sniffed:
            logger.warning(f"Formato {sniffed} não suportado pela impressora, usando {GENERIC_DOCUMENT_FORMAT}")
        return GENERIC_DOCUMENT_FORMAT

    @staticmethod
    def _job_id(response):
        for group in attribute_groups(response.attributes, GROUP_JOB):
            job_id = group.get("job-id")
            if job_id:
                return job_id

        operation = flatten_attributes(response.attributes.get(GROUP_OPERATION) or {})
        return operation.get("job-id")

    async def submit(self, printer_name, data, job_name, copies=1, user="anonymous"):
        """
        Envia um documento para impressão

        Args:
            printer_name (str): Nome da impressora
            data (bytes): Conteúdo do arquivo
            job_name (str): Nome do trabalho (nome original do arquivo)
            copies (int): Número de cópias
            user (str): Usuário solicitante

        Returns:
            dict: {"success": True, "jobId": ...} ou
                  {"success": False, "message": str[, "error": str]}
        """
        try:
            if not printer_name:
                raise ValidationError("Selecione uma impressora")
            copies = parse_copies(copies)
        except ValidationError as e:
            return {"success": False, "message": str(e)}

        document_format = self.resolve_document_format(data)
        job_name = recover_filename(job_name) or "Untitled"
        target = printer_uri(self.app_config.cups_base_url, printer_name)

        message = {
            "operation-attributes-tag": {
                "requesting-user-name": user,
                "job-name": job_name,
                "document-format": document_format,
            },
            "job-attributes-tag": {
                "copies": copies,
            },
            "data": data,
        }

        logger.debug(f"Enviando Print-Job para {target}: {job_name} ({len(data)} bytes, {document_format}, {copies} cópia(s))")

        try:
            response = await self.transport.execute(target, "Print-Job", message)
            response.raise_for_status()
        except TransportError as e:
            logger.error(f"Falha ao imprimir em {printer_name}: {e}")
            return {"success": False, "message": "Falha ao imprimir", "error": str(e)}

        job_id = self._job_id(response)
        if not job_id:
            job_id = int(time.time() * 1000)
            logger.warning(f"Servidor não retornou job-id, usando identificador local {job_id}")

        logger.info(f"Trabalho {job_id} enviado para {printer_name} por {user}")
        return {"success": True, "jobId": job_id}
