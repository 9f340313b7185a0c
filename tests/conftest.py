import os
import socket
import sys
import urllib.request
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
TESTS = Path(__file__).resolve().parent

# Prefer repo sources over any installed package.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0] if isinstance(address, tuple) else address
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


@pytest.fixture
def households():
    return [
        {
            "Anocadastro": "2024",
            "Identificação": "Família Souza",
            "Pai": "Carlos Souza",
            "Mãe": "Mãe: Fulana",
            "Email Pai": "carlos@example.com",
            "Email Mãe": "fulana@example.com",
            "Celular": "(11) 98888-7777",
            "Telefone Residencial": "(11) 3333-4444",
            "Placa1": "ABC1234",
            "Adesivo1": "T-9",
            "Marca/Modelo1": "Honda Civic",
            "Aluno1": "Pedro Souza",
            "SÉRIE1": "5º ano",
        },
        {
            "Identificação": "Família Lima",
            "Placa1": "XYZ9999",
            "Adesivo2": "T-90",
            "Marca/Modelo2": "Fiat Uno",
            "Aluno1": "Ana Lima",
            "Aluno2": "João Lima",
        },
        {
            "Identificação": "Família Prado",
            "Pai": "Marcos Prado",
            "Placa3": "QWE5T67",
            "Adesivo3": "400",
        },
    ]
