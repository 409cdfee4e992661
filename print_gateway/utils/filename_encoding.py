#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Correção de nomes de arquivo decodificados como Latin-1

A biblioteca IPP e o parser de multipart entregam nomes UTF-8 decodificados
como Latin-1 ("relatÃ³rio.pdf" em vez de "relatório.pdf"). Esta etapa fica
isolada para poder ser removida quando a origem for corrigida.
"""

import logging

logger = logging.getLogger("PrintGateway.Utils.FilenameEncoding")


def recover_filename(name):
    """
    Reinterpreta os bytes Latin-1 do nome como UTF-8

    Args:
        name (str): Nome possivelmente mal decodificado

    Returns:
        str: Nome corrigido, ou o original se a conversão falhar
    """
    if not isinstance(name, str) or not name:
        return name

    try:
        recovered = name.encode('latin-1').decode('utf-8')
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name

    if recovered != name:
        logger.debug(f"Nome de arquivo corrigido: {name!r} -> {recovered!r}")
    return recovered
