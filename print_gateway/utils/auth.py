#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Utilitários de autenticação

Identifica o usuário da requisição via HTTP Basic contra a tabela de usuários
da configuração. O restante do sistema só recebe o nome do usuário.
"""

import hmac
import logging
from functools import wraps

from flask import g, jsonify, request

logger = logging.getLogger("PrintGateway.Utils.Auth")


class AuthManager:
    """Gerenciador de autenticação de usuário"""

    def __init__(self, app_config):
        """
        Inicializa o gerenciador de autenticação

        Args:
            app_config: Configuração da aplicação
        """
        self.app_config = app_config

    def authenticate(self, username, password):
        """
        Verifica as credenciais de um usuário

        Returns:
            bool: True se usuário e senha conferem
        """
        if not username or not password:
            return False

        expected = self.app_config.users.get(username)
        if expected is None:
            return False
        return hmac.compare_digest(expected.encode('utf-8'), password.encode('utf-8'))

    def require_user(self, view):
        """Decorador que exige usuário autenticado e publica o nome em flask.g.username"""

        @wraps(view)
        def wrapper(*args, **kwargs):
            credentials = request.authorization
            if not credentials or not self.authenticate(credentials.username, credentials.password):
                logger.info(f"Acesso negado a {request.path}")
                response = jsonify({"success": False, "message": "Não autenticado"})
                response.status_code = 401
                response.headers["WWW-Authenticate"] = 'Basic realm="PrintGateway"'
                return response

            g.username = credentials.username
            return view(*args, **kwargs)

        return wrapper
