#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Gateway Web de Impressão
Servidor HTTP que publica as impressoras de um servidor CUPS para usuários autenticados
"""

import os
import sys
import logging
import argparse
from dotenv import load_dotenv

from print_gateway.config import AppConfig
from print_gateway.api.server import PrintServerAPI


def setup_logging(log_dir):
    """Configura o sistema de logs da aplicação"""
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    # Remove handlers existentes para evitar duplicação
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = logging.DEBUG if os.getenv("LOG_LEVEL", "").upper() == "DEBUG" else logging.INFO

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger("PrintGateway")
    logger.info(f"Arquivo de log: {log_file}")
    return logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Gateway web de impressão para CUPS")
    parser.add_argument("--data-dir", help="Diretório de dados (histórico, configuração e logs)")
    parser.add_argument("--port", type=int, help="Porta HTTP")
    parser.add_argument("--env-file", default=".env", help="Arquivo .env a carregar")
    return parser.parse_args(argv)


def main(argv=None):
    """Função principal da aplicação"""
    args = parse_args(argv)
    load_dotenv(args.env_file)

    config = AppConfig(args.data_dir)
    logger = setup_logging(config.log_dir)

    try:
        logger.info("Iniciando Gateway Web de Impressão")
        logger.info(f"Diretório de dados: {config.data_dir}")
        logger.info(f"Usuários configurados: {', '.join(config.users)}")

        server = PrintServerAPI(config)
        server.run(args.port)

        logger.info("Aplicação encerrada")
        return 0
    except Exception as e:
        logger.error(f"Erro fatal na aplicação: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
