from __future__ import annotations

import logging as py_logging
from pathlib import Path

import pytest

from fakes import FakeSurfaceFactory
from kermit.config import Configuration
from kermit.terminal import SessionManager


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        if "property" in path.parts:
            item.add_marker(pytest.mark.property)


def pytest_runtest_teardown(item: pytest.Item, nextitem: pytest.Item | None) -> None:
    del item, nextitem
    logger = py_logging.getLogger("kermit")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(py_logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def surfaces() -> FakeSurfaceFactory:
    return FakeSurfaceFactory()


@pytest.fixture
def launches() -> list[tuple[list[str], str]]:
    return []


@pytest.fixture
def session(
    surfaces: FakeSurfaceFactory,
    launches: list[tuple[list[str], str]],
    tmp_path: Path,
) -> SessionManager:
    manager = SessionManager(
        Configuration(),
        surface_factory=surfaces,
        command=["/bin/zsh"],
        launch_command=("kermit", "-t", "froggy"),
        launch_directory=tmp_path,
        launcher=lambda argv, cwd: launches.append((list(argv), cwd)),
    )
    manager.start()
    return manager
