#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Módulo de configuração da aplicação

Camadas, da menor para a maior prioridade: valores padrão, arquivo
config/config.json no diretório de dados e variáveis de ambiente.
"""

import os
import json
import logging
import appdirs

logger = logging.getLogger("PrintGateway.Config")

DEFAULT_CANDIDATE_PRINTERS = ["7100cn", "LBP-7100cn", "printer"]

DEFAULT_ALLOWED_MIME_TYPES = [
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/jpg",
]

DEFAULT_ALLOWED_EXTENSIONS = [".pdf", ".txt", ".doc", ".docx", ".jpg", ".jpeg", ".png"]

# Formatos que as impressoras aceitam diretamente
DEFAULT_DOCUMENT_FORMATS = [
    "application/pdf",
    "application/postscript",
    "image/jpeg",
    "image/png",
    "image/tiff",
    "text/plain",
    "text/html",
]

# chave -> (variável de ambiente, tipo)
ENVIRONMENT_KEYS = {
    "cups_base_url": ("CUPS_BASE_URL", str),
    "cups_username": ("CUPS_USERNAME", str),
    "cups_password": ("CUPS_PASSWORD", str),
    "candidate_printers": ("CUPS_CANDIDATE_PRINTERS", list),
    "job_printer_placeholder": ("CUPS_JOB_PRINTER_PLACEHOLDER", str),
    "allowed_mime_types": ("ALLOWED_MIME_TYPES", list),
    "allowed_extensions": ("ALLOWED_EXTENSIONS", list),
    "supported_document_formats": ("SUPPORTED_DOCUMENT_FORMATS", list),
    "max_file_size": ("MAX_FILE_SIZE", int),
    "ipp_timeout": ("IPP_TIMEOUT", float),
    "users": ("USERS", dict),
    "api_host": ("HOST", str),
    "api_port": ("PORT", int),
    "history_max_records": ("HISTORY_MAX_RECORDS", int),
}


def parse_list(value):
    """Converte "a, b,c" em ["a", "b", "c"]"""
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_users(value):
    """
    Converte a tabela de usuários do formato "user1:senha1,user2:senha2"

    Args:
        value (str): Tabela no formato de variável de ambiente

    Returns:
        dict: Usuário -> senha
    """
    users = {}
    for pair in value.split(","):
        username, _, password = pair.partition(":")
        if username.strip() and password.strip():
            users[username.strip()] = password.strip()
    return users


class AppConfig:
    """Classe para gerenciar configurações da aplicação"""

    def __init__(self, data_dir=None, environ=None):
        """
        Inicializa a configuração

        Args:
            data_dir (str, optional): Diretório de dados; padrão é o diretório do usuário
            environ (dict, optional): Variáveis de ambiente; padrão é os.environ
        """
        self.data_dir = data_dir or appdirs.user_data_dir("PrintGateway", "LoQQuei")
        self.config_file = os.path.join(self.data_dir, "config", "config.json")
        self.history_file = os.path.join(self.data_dir, "data", "history.json")
        self.log_dir = os.path.join(self.data_dir, "logs")
        self.environ = os.environ if environ is None else environ

        self.default_config = {
            "cups_base_url": "http://localhost:631",
            "cups_username": "",
            "cups_password": "",
            "candidate_printers": list(DEFAULT_CANDIDATE_PRINTERS),
            "job_printer_placeholder": "",
            "allowed_mime_types": list(DEFAULT_ALLOWED_MIME_TYPES),
            "allowed_extensions": list(DEFAULT_ALLOWED_EXTENSIONS),
            "supported_document_formats": list(DEFAULT_DOCUMENT_FORMATS),
            "max_file_size": 50 * 1024 * 1024,
            "ipp_timeout": 15,
            "users": {"admin": "admin123"},
            "api_host": "0.0.0.0",
            "api_port": 3000,
            "history_max_records": 500,
        }

        self._ensure_directories()
        self.config = self._load_config()
        self.overrides = self._load_environment()

    def _ensure_directories(self):
        """Garante que os diretórios necessários existam"""
        for directory in (os.path.dirname(self.config_file), os.path.dirname(self.history_file), self.log_dir):
            os.makedirs(directory, exist_ok=True)

    def _load_config(self):
        """
        Carrega configurações do arquivo ou cria um novo se não existir

        Returns:
            dict: Configurações carregadas
        """
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config = json.load(f)

                # Garantir que todas as chaves padrão existam
                for key, value in self.default_config.items():
                    if key not in config:
                        config[key] = value

                return config
            else:
                return self._save_config(dict(self.default_config))
        except Exception as e:
            logger.error(f"Erro ao carregar configurações: {str(e)}")
            return dict(self.default_config)

    def _save_config(self, config):
        """
        Salva configurações no arquivo

        Args:
            config (dict): Configurações a serem salvas

        Returns:
            dict: Configurações salvas
        """
        try:
            os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=4, ensure_ascii=False)
            return config
        except Exception as e:
            logger.error(f"Erro ao salvar configurações: {str(e)}")
            return config

    def _load_environment(self):
        """Lê as variáveis de ambiente que sobrepõem o arquivo"""
        overrides = {}
        for key, (variable, kind) in ENVIRONMENT_KEYS.items():
            raw = self.environ.get(variable)
            if raw is None or raw == "":
                continue
            try:
                if kind is list:
                    overrides[key] = parse_list(raw)
                elif kind is dict:
                    overrides[key] = parse_users(raw)
                else:
                    overrides[key] = kind(raw)
            except ValueError:
                logger.warning(f"Valor inválido em {variable}, usando configuração do arquivo")
        return overrides

    def get(self, key, default=None):
        """
        Obtém valor de configuração

        Args:
            key (str): Chave da configuração
            default: Valor padrão se a chave não existir

        Returns:
            Valor da configuração
        """
        if key in self.overrides:
            return self.overrides[key]
        return self.config.get(key, default)

    def set(self, key, value):
        """
        Define valor de configuração e persiste no arquivo

        Args:
            key (str): Chave da configuração
            value: Valor a ser definido
        """
        self.config[key] = value
        self.overrides.pop(key, None)
        self._save_config(self.config)

    @property
    def cups_base_url(self):
        return self.get("cups_base_url").rstrip("/")

    @property
    def candidate_printers(self):
        return list(self.get("candidate_printers", []))

    @property
    def job_printer_placeholder(self):
        """Impressora assumida para trabalhos que só trazem job-uri"""
        placeholder = self.get("job_printer_placeholder")
        if placeholder:
            return placeholder
        candidates = self.candidate_printers
        return candidates[0] if candidates else None

    @property
    def users(self):
        return dict(self.get("users", {}))
