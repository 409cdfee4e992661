"""Setup para o projeto"""
from setuptools import setup, find_packages

# Configuração do projeto
APP_NAME = "PrintGateway"
APP_AUTHOR = "LoQQuei"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Gateway Web de Impressão para servidores CUPS"

# Dependências básicas
install_requires = [
    "pyipp>=0.11.0",
    "aiohttp>=3.8.0",
    "flask>=3.1.1",
    'flask_cors>=6.0.0',
    "appdirs>=1.4.4",
    "python-dotenv>=1.0.0",
]

setup(
    name=APP_NAME,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    author=APP_AUTHOR,
    author_email="contato@loqquei.com.br",
    url="https://loqquei.com.br",
    packages=find_packages(include=["print_gateway", "print_gateway.*"]),
    py_modules=["main"],
    install_requires=install_requires,
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            f"{APP_NAME.lower()}=main:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Office/Business",
        "Topic :: Printing",
    ],
)
