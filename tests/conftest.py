"""
Configurações globais do Pytest para o Hospital Service Desk.

Este arquivo é carregado automaticamente pelo pytest e
fornece fixtures e configurações compartilhadas.
"""

import pytest
import sys
from pathlib import Path

# Raiz do projeto no path para imports "src.core..."
project_path = Path(__file__).parent.parent
if str(project_path) not in sys.path:
    sys.path.insert(0, str(project_path))


@pytest.fixture(scope="session")
def project_root():
    """Retorna o caminho raiz do projeto."""
    return project_path


def pytest_configure(config):
    """Configuração do pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Pula testes de integração fora do modo de integração."""
    skip_integration = pytest.mark.skip(reason="Integration tests require database")

    for item in items:
        if "integration" in item.keywords:
            if not config.getoption("--run-integration", default=False):
                item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Adiciona opções de linha de comando."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )
