import pytest

from mjml_toolkit.core.services import HistoryService, TreeEditingService


@pytest.fixture
def service():
    return TreeEditingService(width_precision=2)


@pytest.fixture
def history(tree):
    return HistoryService(tree, max_history=5)
