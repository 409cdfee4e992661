#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Servidor API do gateway de impressão

Este módulo implementa um servidor HTTP que expõe uma API REST para listar as
impressoras do servidor CUPS, acompanhar trabalhos, enviar arquivos para
impressão e consultar o histórico de envios.
"""

import os
import asyncio
import logging
import threading
import time
from datetime import datetime
from flask import Flask, request, jsonify, g
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.serving import make_server

from print_gateway.models.history import HistoryRecord, HistoryStatus
from print_gateway.utils.auth import AuthManager
from print_gateway.utils.history_store import HistoryStore, HISTORY_PAGE_SIZE
from print_gateway.utils.ipp_client import PyippTransport
from print_gateway.utils.job_query import JobQuery, WHICH_JOBS, WHICH_JOBS_ALL
from print_gateway.utils.print_system import PrintSystem, sniff_document_format
from print_gateway.utils.printer_discovery import PrinterDiscovery
from print_gateway.utils.printer_status import PrinterStatus

logger = logging.getLogger("PrintGateway.API")


def run_async(coroutine):
    """Executa uma corrotina num loop de eventos próprio da requisição"""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coroutine)
    finally:
        loop.close()


def _serialize(result, key):
    """Converte a lista de modelos de um resultado para dicionários"""
    if not result.get("success"):
        return result
    serialized = dict(result)
    serialized[key] = [item.to_dict() for item in result[key]]
    return serialized


class PrintServerAPI:
    """Classe que implementa o servidor API do gateway de impressão"""

    def __init__(self, app_config, transport=None, history_store=None):
        """
        Inicializa o servidor API

        Args:
            app_config: Configuração da aplicação
            transport (optional): Transporte IPP; padrão é o pyipp
            history_store (optional): Histórico de impressão; padrão é o arquivo da configuração
        """
        self.app_config = app_config
        self.flask_app = Flask(__name__)
        self.flask_app.config["MAX_CONTENT_LENGTH"] = app_config.get("max_file_size") + 1024 * 1024
        CORS(self.flask_app)  # Permite requisições de origem cruzada

        self.transport = transport or PyippTransport.from_config(app_config)
        self.history = history_store or HistoryStore(
            app_config.history_file,
            max_records=app_config.get("history_max_records", 500),
        )

        self.auth = AuthManager(app_config)
        self.discovery = PrinterDiscovery(app_config, self.transport)
        self.job_query = JobQuery(app_config, self.transport)
        self.printer_status = PrinterStatus(self.discovery, self.job_query)
        self.print_system = PrintSystem(app_config, self.transport)

        # Servidor HTTP
        self.server = None
        self.is_running = False
        self.server_thread = None
        self.port = None

        # Configura as rotas da API
        self._configure_routes()

    def _configure_routes(self):
        """Configura as rotas da API"""
        protected = self.auth.require_user
        app = self.flask_app

        app.add_url_rule('/api/health', 'health', self.health, methods=['GET'])
        app.add_url_rule('/api/verify', 'verify', protected(self.verify), methods=['GET'])

        # Impressoras
        app.add_url_rule('/api/printers', 'list_printers', protected(self.list_printers), methods=['GET'])
        app.add_url_rule('/api/status', 'get_status', protected(self.get_status), methods=['GET'])

        # Trabalhos
        app.add_url_rule('/api/jobs', 'list_jobs', protected(self.list_jobs), methods=['GET'])
        app.add_url_rule('/api/jobs/<job_id>/cancel', 'cancel_job', protected(self.cancel_job), methods=['POST'])

        # Impressão e histórico
        app.add_url_rule('/api/print', 'print_document', protected(self.print_document), methods=['POST'])
        app.add_url_rule('/api/history', 'get_history', protected(self.get_history), methods=['GET'])

        app.register_error_handler(RequestEntityTooLarge, self._file_too_large)

    def _file_too_large(self, error):
        max_mb = self.app_config.get("max_file_size") / 1024 / 1024
        return jsonify({
            "success": False,
            "message": f"Arquivo excede o tamanho máximo ({max_mb:g}MB)"
        }), 413

    # Rotas da API
    def health(self):
        """Retorna o status do servidor"""
        return jsonify({
            "status": "online",
            "timestamp": datetime.now().isoformat(),
            "port": self.port
        })

    def verify(self):
        """Confirma as credenciais do usuário"""
        return jsonify({"success": True, "username": g.username})

    def list_printers(self):
        """Lista as impressoras do servidor CUPS"""
        logger.info(f"Listagem de impressoras solicitada por {g.username}")
        try:
            result = run_async(self.discovery.discover_printers())
            return jsonify(_serialize(result, "printers"))
        except Exception as e:
            logger.error(f"Erro ao listar impressoras: {e}")
            return jsonify({"success": False, "message": "Falha ao obter impressoras", "error": str(e)}), 500

    def get_status(self):
        """Lista as impressoras com a contagem atual de trabalhos"""
        logger.info(f"Status das impressoras solicitado por {g.username}")
        try:
            result = run_async(self.printer_status.get_status())
            return jsonify(_serialize(result, "printers"))
        except Exception as e:
            logger.error(f"Erro ao obter status das impressoras: {e}")
            return jsonify({"success": False, "message": "Falha ao obter status", "error": str(e)}), 500

    def list_jobs(self):
        """Lista os trabalhos de impressão"""
        which = request.args.get('which', WHICH_JOBS_ALL)
        printer = request.args.get('printer') or None

        if which not in WHICH_JOBS:
            return jsonify({
                "success": False,
                "message": f"Filtro inválido: {which}"
            }), 400

        try:
            result = run_async(self.job_query.list_jobs(which=which, printer=printer))
            return jsonify(_serialize(result, "jobs"))
        except Exception as e:
            logger.error(f"Erro ao listar trabalhos: {e}")
            return jsonify({"success": False, "message": "Falha ao obter trabalhos", "error": str(e)}), 500

    def cancel_job(self, job_id):
        """Cancela um trabalho de impressão"""
        body = request.get_json(silent=True) or {}
        printer = body.get('printer') or request.form.get('printer')

        logger.info(f"Cancelamento do trabalho {job_id} em {printer} solicitado por {g.username}")
        try:
            result = run_async(self.job_query.cancel_job(job_id, printer, g.username))
        except Exception as e:
            logger.error(f"Erro ao cancelar trabalho: {e}")
            return jsonify({"success": False, "message": "Falha ao cancelar o trabalho", "error": str(e)}), 500

        if result["success"]:
            self.history.update_status(job_id, HistoryStatus.CANCELLED)
            return jsonify(result)

        # Sem "error" é falha de validação do pedido
        return jsonify(result), (200 if "error" in result else 400)

    def get_history(self):
        """Obtém o histórico de envios"""
        records = self.history.list(limit=HISTORY_PAGE_SIZE)
        return jsonify({
            "success": True,
            "history": [record.to_dict() for record in records]
        })

    def _validate_upload(self, file, data):
        """
        Valida o arquivo recebido

        Returns:
            str: Mensagem de erro, ou None se o arquivo é aceito
        """
        extension = os.path.splitext(file.filename)[1].lower()
        if extension not in self.app_config.get("allowed_extensions", []):
            return "Tipo de arquivo não suportado"

        sniffed = sniff_document_format(data)
        if sniffed and sniffed not in self.app_config.get("allowed_mime_types", []):
            return "Tipo de arquivo não suportado"

        return None

    def print_document(self):
        """Recebe um arquivo e envia para impressão"""
        try:
            if 'file' not in request.files or not request.files['file'].filename:
                return jsonify({"success": False, "message": "Envie um arquivo"}), 400

            file = request.files['file']
            printer = request.form.get('printer', '').strip()
            copies = request.form.get('copies') or 1

            if not printer:
                return jsonify({"success": False, "message": "Selecione uma impressora"}), 400

            data = file.read()
            if len(data) > self.app_config.get("max_file_size"):
                return self._file_too_large(None)

            error_message = self._validate_upload(file, data)
            if error_message:
                return jsonify({"success": False, "message": error_message}), 400

            logger.info(f"Pedido de impressão: {file.filename} -> {printer} ({copies} cópia(s)) por {g.username}")

            result = run_async(self.print_system.submit(
                printer_name=printer,
                data=data,
                job_name=file.filename,
                copies=copies,
                user=g.username,
            ))

            if result["success"]:
                self.history.append(HistoryRecord.for_submission(
                    job_id=result["jobId"],
                    filename=file.filename,
                    printer=printer,
                    size_bytes=len(data),
                    user=g.username,
                ))
                return jsonify({
                    "success": True,
                    "message": "Arquivo adicionado à fila de impressão",
                    "jobId": result["jobId"]
                })

            if "error" not in result:
                return jsonify(result), 400

            self.history.append(HistoryRecord.for_submission(
                job_id=int(time.time() * 1000),
                filename=file.filename,
                printer=printer,
                size_bytes=len(data),
                user=g.username,
                status=HistoryStatus.FAILED,
            ))
            return jsonify(result)
        except RequestEntityTooLarge:
            raise
        except Exception as e:
            logger.error(f"Erro ao imprimir: {e}")
            return jsonify({"success": False, "message": f"Falha ao imprimir: {e}"}), 500

    def start(self, port=None):
        """
        Inicia o servidor em uma thread separada

        Args:
            port (int, optional): Porta; padrão é a da configuração

        Returns:
            int: Porta em que o servidor foi iniciado
        """
        if self.is_running:
            logger.warning("Servidor já está em execução")
            return self.port

        host = self.app_config.get("api_host", "0.0.0.0")
        self.port = port or self.app_config.get("api_port", 3000)

        # Cria o servidor HTTP
        self.server = make_server(host, self.port, self.flask_app, threaded=True)
        self.is_running = True

        self.server_thread = threading.Thread(target=self.server.serve_forever)
        self.server_thread.daemon = True
        self.server_thread.start()

        logger.info(f"Servidor API iniciado em http://{host}:{self.port}")
        logger.info(f"Servidor CUPS: {self.app_config.cups_base_url}")
        return self.port

    def run(self, port=None):
        """Inicia o servidor e bloqueia até ser interrompido"""
        self.start(port)
        try:
            self.server_thread.join()
        except KeyboardInterrupt:
            logger.info("Interrupção recebida")
        finally:
            self.stop()

    def stop(self):
        """Para o servidor"""
        if not self.is_running:
            return

        logger.info("Parando servidor API...")
        try:
            if self.server:
                self.server.shutdown()
                self.server = None

            self.is_running = False
            self.server_thread = None
            logger.info("Servidor API parado com sucesso")
        except Exception as e:
            logger.error(f"Erro ao parar servidor API: {e}")
