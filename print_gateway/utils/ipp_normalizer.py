#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Normalização de atributos IPP

Converte os "sacos de atributos" retornados pelo servidor em PrinterInfo e
JobInfo. O mesmo atributo pode chegar em formatos diferentes dependendo do
servidor e da biblioteca: códigos numéricos ou textuais, grupos aninhados ou
achatados, datas em epoch/ISO/datetime e nomes de arquivo mal codificados.
Todas as funções daqui são totais: entradas inesperadas viram valores padrão,
nunca exceções.
"""

import logging
import re
from datetime import date, datetime, timezone
from urllib.parse import unquote

from print_gateway.models.printer import PrinterInfo, PrinterState
from print_gateway.models.print_job import JobInfo, JobStatus
from print_gateway.utils.filename_encoding import recover_filename
from print_gateway.utils.ipp_client import GROUP_JOB, GROUP_PRINTER

logger = logging.getLogger("PrintGateway.Utils.IppNormalizer")

UNKNOWN_PRINTER = "Unknown Printer"
UNKNOWN_USER = "Unknown User"
UNTITLED_JOB = "Untitled"

PRINTER_STATES = {
    3: PrinterState.IDLE,
    4: PrinterState.PROCESSING,
    5: PrinterState.STOPPED,
}

# Difere dos códigos do RFC 8011
# (lá 5=processing, 7=canceled, 9=completed)
JOB_STATES = {
    3: JobStatus.PENDING,
    4: JobStatus.PROCESSING,
    5: JobStatus.COMPLETED,
    6: JobStatus.CANCELLED,
    7: JobStatus.ABORTED,
}

JOB_STATE_TOKENS = {
    "pending": JobStatus.PENDING,
    "processing": JobStatus.PROCESSING,
    "completed": JobStatus.COMPLETED,
    "canceled": JobStatus.CANCELLED,
    "cancelled": JobStatus.CANCELLED,
    "aborted": JobStatus.ABORTED,
    "stopped": JobStatus.STOPPED,
}

PRINTER_URI_PATTERN = re.compile(r"/printers/([^/]+)$")


def attribute_value(value):
    """Desembrulha listas de um único elemento (atributos 1setOf)"""
    if isinstance(value, (list, tuple)):
        if len(value) == 1:
            return value[0]
        if not value:
            return None
    return value


def _text(value, default=""):
    value = attribute_value(value)
    if value is None:
        return default
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _integer(value, default=0):
    value = attribute_value(value)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return default


def _boolean(value):
    value = attribute_value(value)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def flatten_attributes(raw, group_tag=None):
    """
    Achata um grupo de atributos aninhado sobre o objeto externo

    Algumas respostas trazem o grupo repetido um nível abaixo
    ({"printer-attributes-tag": {...}}). As chaves internas prevalecem.

    Args:
        raw (dict): Saco de atributos
        group_tag (str, optional): Grupo específico; None aceita qualquer "*-attributes-tag"

    Returns:
        dict: Atributos achatados
    """
    if not isinstance(raw, dict):
        return {}

    flattened = dict(raw)
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        if key == group_tag or (group_tag is None and key.endswith("-attributes-tag")):
            flattened.update(value)
    return flattened


def attribute_groups(attributes, group_tag):
    """
    Obtém a lista de grupos de um tipo numa resposta

    O grupo pode vir como dict único, lista de dicts ou estar ausente.
    """
    if not isinstance(attributes, dict):
        return []
    groups = attributes.get(group_tag)
    if isinstance(groups, dict):
        return [groups]
    if isinstance(groups, (list, tuple)):
        return [g for g in groups if isinstance(g, dict)]
    return []


def printer_bags(attributes):
    """Extrai os sacos de atributos de impressora de uma resposta, aninhados ou achatados"""
    groups = attribute_groups(attributes, GROUP_PRINTER)
    if groups:
        return [flatten_attributes(g, GROUP_PRINTER) for g in groups]
    if isinstance(attributes, dict) and "printer-name" in attributes:
        return [flatten_attributes(attributes, GROUP_PRINTER)]
    return []


def job_bags(attributes):
    """Extrai os sacos de atributos de trabalho de uma resposta, aninhados ou achatados"""
    groups = attribute_groups(attributes, GROUP_JOB)
    if groups:
        return [flatten_attributes(g, GROUP_JOB) for g in groups]
    if isinstance(attributes, dict) and "job-id" in attributes:
        return [flatten_attributes(attributes, GROUP_JOB)]
    return []


def printer_state(value):
    """
    Mapeia printer-state numérico ou textual

    Args:
        value: 3/4/5, "3"/"idle"/"processing"/"stopped" ou qualquer outra coisa

    Returns:
        PrinterState: Estado canônico (UNKNOWN se não reconhecido)
    """
    value = attribute_value(value)
    if isinstance(value, bool):
        return PrinterState.UNKNOWN
    if isinstance(value, str):
        token = value.strip().lower()
        if token.isdigit():
            return PRINTER_STATES.get(int(token), PrinterState.UNKNOWN)
        for state in PRINTER_STATES.values():
            if state.value == token:
                return state
        return PrinterState.UNKNOWN
    if isinstance(value, int):
        return PRINTER_STATES.get(value, PrinterState.UNKNOWN)
    return PrinterState.UNKNOWN


def job_state(value):
    """
    Mapeia job-state numérico ou textual

    Valores desconhecidos viram PENDING, comportamento herdado que pode
    mascarar estados novos do servidor.
    """
    value = attribute_value(value)
    if isinstance(value, bool):
        return JobStatus.PENDING
    if isinstance(value, str):
        token = value.strip().lower()
        if token.isdigit():
            return JOB_STATES.get(int(token), JobStatus.PENDING)
        return JOB_STATE_TOKENS.get(token, JobStatus.PENDING)
    if isinstance(value, int):
        return JOB_STATES.get(value, JobStatus.PENDING)
    return JobStatus.PENDING


def _epoch_to_iso(seconds):
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def _date_to_iso(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _epoch_to_iso(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).isoformat()
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _date_to_iso(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def decode_creation_time(data, now=None):
    """
    Obtém a data de criação de um trabalho em ISO-8601

    Ordem: time-at-creation (epoch), date-time-at-creation (epoch, ISO ou
    datetime), hora atual.

    Args:
        data (dict): Atributos do trabalho
        now (datetime, optional): Hora atual, para testes

    Returns:
        str: Data em ISO-8601 (UTC)
    """
    time_at_creation = attribute_value(data.get("time-at-creation"))
    if isinstance(time_at_creation, (int, float)) and not isinstance(time_at_creation, bool):
        decoded = _epoch_to_iso(time_at_creation)
        if decoded:
            return decoded

    decoded = _date_to_iso(attribute_value(data.get("date-time-at-creation")))
    if decoded:
        return decoded

    return (now or datetime.now(timezone.utc)).isoformat()


def printer_name_from_uri(uri):
    """Extrai o nome da impressora de uma URI .../printers/<nome>"""
    if not isinstance(uri, str):
        return None
    match = PRINTER_URI_PATTERN.search(uri.rstrip("/"))
    if not match:
        return None
    return unquote(match.group(1))


def resolve_job_printer(data, default=UNKNOWN_PRINTER, placeholder=None):
    """
    Descobre a qual impressora um trabalho pertence

    Ordem: printer-uri/job-printer-uri, printer-name, marcador configurado
    quando só há job-uri, padrão do chamador. O marcador é uma aproximação:
    job-uri não identifica a impressora.
    """
    for key in ("printer-uri", "job-printer-uri"):
        name = printer_name_from_uri(attribute_value(data.get(key)))
        if name:
            return name

    printer_name = _text(data.get("printer-name"))
    if printer_name:
        return printer_name

    if placeholder and data.get("job-uri"):
        return placeholder

    return default


def normalize_printer(raw, default_name=""):
    """
    Normaliza os atributos de uma impressora

    Args:
        raw (dict): Saco de atributos do Get-Printer-Attributes/CUPS-Get-Printers
        default_name (str): Nome usado quando printer-name está ausente

    Returns:
        PrinterInfo: Impressora normalizada (name vazio se desconhecido)
    """
    data = flatten_attributes(raw, GROUP_PRINTER)

    return PrinterInfo(
        name=_text(data.get("printer-name")) or default_name,
        state=printer_state(data.get("printer-state")),
        is_accepting_jobs=_boolean(data.get("printer-is-accepting-jobs")),
        location=_text(data.get("printer-location")),
        model=_text(data.get("printer-make-and-model")),
        info=_text(data.get("printer-info")),
        queued_jobs=_integer(data.get("queued-job-count")),
    )


def normalize_job(raw, default_printer=UNKNOWN_PRINTER, placeholder=None, now=None):
    """
    Normaliza os atributos de um trabalho

    Args:
        raw (dict): Saco de atributos do Get-Jobs
        default_printer (str): Impressora usada quando não há como deduzir
        placeholder (str, optional): Impressora assumida quando só há job-uri
        now (datetime, optional): Hora atual, para testes

    Returns:
        JobInfo: Trabalho normalizado, ou None se não houver job-id
    """
    data = flatten_attributes(raw, GROUP_JOB)

    job_id = _integer(data.get("job-id"), default=None)
    if not job_id:
        return None

    return JobInfo(
        id=job_id,
        printer=resolve_job_printer(data, default=default_printer, placeholder=placeholder),
        filename=recover_filename(_text(data.get("job-name")) or UNTITLED_JOB),
        status=job_state(data.get("job-state")),
        submitted_at=decode_creation_time(data, now=now),
        owner_user=_text(data.get("job-originating-user-name")) or UNKNOWN_USER,
        pages=_integer(data.get("job-pages")),
    )
