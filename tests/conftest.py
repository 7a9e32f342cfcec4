from __future__ import annotations

from pathlib import Path

import pytest

here = Path(__file__).parent
root_path = here.parent
pytest_plugins = ["pytest_databases.docker.postgres"]

WIDGETS_DOCUMENT = """\
--- create_widget
INSERT INTO widgets(id, name) VALUES ($1::INT4, $2::VARCHAR);
--- get_widget
SELECT name FROM widgets WHERE id = $1::INT4;
"""


@pytest.fixture
def widgets_document() -> str:
    return WIDGETS_DOCUMENT
