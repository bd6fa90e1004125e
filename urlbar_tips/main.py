from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any, Dict, Iterable, Optional

from dotenv import load_dotenv

from .config import Config, load_config
from .controller import TipController
from .db import Database
from .host import InMemoryHost
from .logger import setup_logging
from .metrics import Telemetry
from .study import resolve_branch, study_from_config
from .types import AppContext, SearchEngine, Study
from .utils import utc_now_ts


async def create_controller(
    config: Config,
    host,
    db: Database,
    logger,
    study: Optional[Study] = None,
    now_fn=utc_now_ts,
) -> Optional[TipController]:
    """Enroll a controller for the study, or return None when not enrolled."""
    branch = resolve_branch(study, config.temporary_install)
    controller = None
    if branch is not None:
        app_ctx = AppContext(
            config=config,
            logger=logger,
            db=db,
            host=host,
            telemetry=Telemetry(db, logger),
        )
        controller = TipController(app_ctx, branch, now_fn=now_fn)
        await controller.enroll()
    else:
        logger.info(
            "not_enrolled",
            extra={
                "study_active": study.active if study else None,
                "study_branch": study.branch if study else None,
            },
        )
    logger.info("ready", extra={"enrolled": controller is not None})
    return controller


def _build_host(setup: Dict[str, Any]) -> InMemoryHost:
    host = InMemoryHost(
        showing_notification=bool(setup.get("showing_notification", False)),
        last_update_ts=setup.get("last_update_ts", 0.0),
    )
    for engine in setup.get("engines", []):
        host.engines.append(
            SearchEngine(
                name=engine["name"],
                is_default=bool(engine.get("is_default", False)),
                fav_icon_url=engine.get("fav_icon_url"),
            )
        )
    for tab in setup.get("tabs", []):
        host.set_tab(int(tab["tab_id"]), tab["url"], active=bool(tab.get("active", True)))
    return host


async def replay_event(controller: TipController, host: InMemoryHost, event: Dict[str, Any]) -> None:
    kind = event.get("event")
    if kind == "tab_activated":
        await host.activate_tab(int(event["tab_id"]))
    elif kind == "navigation_started":
        await host.start_navigation(int(event["tab_id"]), event["url"], int(event.get("frame_id", 0)))
    elif kind == "navigation_completed":
        await host.complete_navigation(int(event["tab_id"]), event["url"], int(event.get("frame_id", 0)))
    elif kind == "window_focus_changed":
        await host.change_window_focus(int(event.get("window_id", 1)))
    elif kind == "urlbar_search":
        host.displayed = await host.run_query(event.get("query", ""))
    elif kind == "result_picked":
        await controller.wait_for_display()
        if host.displayed:
            await host.pick_result(host.displayed[0])
    elif kind == "engagement":
        await controller.wait_for_display()
        await host.notify_engagement(event.get("state", "engagement"))
    elif kind == "sleep":
        await asyncio.sleep(float(event.get("ms", 0)) / 1000.0)
    elif kind == "set_tab":
        host.set_tab(int(event["tab_id"]), event["url"], active=bool(event.get("active", True)))
    elif kind == "set_notification":
        host.showing_notification = bool(event.get("value", False))
    elif kind == "set_last_update":
        host.last_update_ts = event.get("ts")
    elif kind == "unenroll":
        await controller.unenroll()
    else:
        raise ValueError(f"unknown replay event: {kind!r}")


async def replay(config: Config, lines: Iterable[str], logger) -> int:
    events = [json.loads(line) for line in lines if line.strip()]
    setup: Dict[str, Any] = {}
    if events and events[0].get("event") == "setup":
        setup = events.pop(0)
    host = _build_host(setup)

    db_dir = os.path.dirname(config.sqlite_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    db = await Database.connect(config.sqlite_path)
    try:
        await db.init()
        controller = await create_controller(config, host, db, logger, study_from_config(config))
        if controller is None:
            return 0
        for event in events:
            if not controller.enrolled and event.get("event") != "sleep":
                logger.info("replay_skipped_after_unenroll", extra={"replay_event": event.get("event")})
                continue
            await replay_event(controller, host, event)
        await controller.wait_for_display()
        logger.info(
            "replay_done",
            extra={
                "events": len(events),
                "searches": len(host.searches),
                "shown_count": await db.get_state_int(config.storage_key, 0),
            },
        )
    finally:
        await db.close()
    return 0


def main() -> None:
    load_dotenv()
    config = load_config()
    logger = setup_logging(config.log_level)

    if len(sys.argv) > 1:
        with open(sys.argv[1], "r", encoding="utf-8") as handle:
            lines = handle.readlines()
    else:
        lines = sys.stdin.readlines()

    sys.exit(asyncio.run(replay(config, lines, logger)))


if __name__ == "__main__":
    main()
