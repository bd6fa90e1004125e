import logging

import pytest
import pytest_asyncio

from urlbar_tips.config import Config
from urlbar_tips.controller import TipController
from urlbar_tips.db import Database
from urlbar_tips.host import InMemoryHost
from urlbar_tips.metrics import Telemetry
from urlbar_tips.types import AppContext, SearchEngine, StudyBranch

NOW = 1_700_000_000.0
DAY = 24 * 3600

GOOGLE_ICON = "https://www.google.com/favicon.ico"


def make_config(sqlite_path: str, **overrides) -> Config:
    values = dict(
        sqlite_path=sqlite_path,
        log_level="DEBUG",
        study_active=True,
        study_branch="treatment",
        temporary_install=False,
        show_tip_delay_sec=0,
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config(tmp_path):
    return make_config(str(tmp_path / "tips.db"))


@pytest.fixture
def logger():
    return logging.getLogger("urlbar_tips.tests")


@pytest.fixture
def host():
    host = InMemoryHost(
        engines=[
            SearchEngine(name="Google", is_default=True, fav_icon_url=GOOGLE_ICON),
            SearchEngine(name="Bing"),
        ],
        last_update_ts=NOW - 2 * DAY,
    )
    host.set_tab(1, "about:newtab")
    host.set_tab(2, "https://www.google.com/", active=False)
    host.set_tab(3, "https://example.com/", active=False)
    return host


@pytest_asyncio.fixture
async def db(config):
    database = await Database.connect(config.sqlite_path)
    await database.init()
    yield database
    await database.close()


@pytest.fixture
def make_ctx(config, logger, host, db):
    def _make(**overrides):
        values = dict(
            config=config,
            logger=logger,
            db=db,
            host=host,
            telemetry=Telemetry(db, logger),
        )
        values.update(overrides)
        return AppContext(**values)

    return _make


@pytest.fixture
def make_controller(make_ctx):
    async def _make(branch=StudyBranch.TREATMENT, ctx=None):
        controller = TipController(ctx or make_ctx(), branch, now_fn=lambda: NOW)
        await controller.enroll()
        return controller

    return _make
