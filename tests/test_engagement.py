import pytest

from conftest import GOOGLE_ICON
from urlbar_tips.engagement import EngagementMachine, build_tip_result
from urlbar_tips.types import SearchEngine, TipKind


def test_onboard_result_is_heuristic():
    result = build_tip_result(TipKind.ONBOARD, SearchEngine("Google", True, GOOGLE_ICON))
    assert result.heuristic is True
    assert result.text == "Type less, find more: Search Google right from your address bar."
    assert result.icon == GOOGLE_ICON


def test_redirect_result_is_not_heuristic():
    result = build_tip_result(TipKind.REDIRECT, SearchEngine("Bing", True))
    assert result.heuristic is False
    assert result.text == (
        "Start your search here to see suggestions from Bing and your browsing history."
    )


def test_result_payload_shape():
    data = build_tip_result(TipKind.ONBOARD, SearchEngine("Google", True, GOOGLE_ICON)).to_dict()
    assert data["type"] == "tip"
    assert data["source"] == "local"
    assert data["heuristic"] is True
    assert data["payload"]["buttonText"] == "Okay, Got It"
    assert data["payload"]["icon"] == GOOGLE_ICON


def test_no_result_for_none_tip():
    with pytest.raises(ValueError):
        build_tip_result(TipKind.NONE, SearchEngine("Google", True))


@pytest.mark.asyncio
async def test_behavior_follows_armed_tip(make_ctx):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    assert await machine.on_behavior_requested("") is False

    ctx.state.armed_tip = TipKind.ONBOARD
    assert await machine.on_behavior_requested("") is True


@pytest.mark.asyncio
async def test_results_consume_armed_tip_once(make_ctx):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.armed_tip = TipKind.REDIRECT

    first = await machine.on_results_requested("")
    second = await machine.on_results_requested("")

    assert len(first) == 1
    assert first[0].heuristic is False
    assert second == []
    assert ctx.state.armed_tip is TipKind.NONE
    assert ctx.state.shown_in_current_engagement is True
    assert await machine.on_behavior_requested("") is False


@pytest.mark.asyncio
async def test_missing_default_engine_returns_nothing(make_ctx, host):
    host.engines = [SearchEngine("Bing")]
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.armed_tip = TipKind.ONBOARD

    assert await machine.on_results_requested("") == []
    assert ctx.state.armed_tip is TipKind.NONE
    assert ctx.state.shown_in_current_engagement is False


@pytest.mark.asyncio
async def test_engagement_with_tip_acknowledges(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.shown_count = 1
    ctx.state.shown_in_current_engagement = True

    await machine.on_engagement("engagement")

    assert ctx.state.shown_count == config.max_shown_count
    assert await db.get_state_int(config.storage_key) == config.max_shown_count
    assert ctx.state.shown_in_current_engagement is False


@pytest.mark.asyncio
async def test_abandonment_does_not_acknowledge(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.shown_count = 1
    ctx.state.shown_in_current_engagement = True

    await machine.on_engagement("abandonment")

    assert ctx.state.shown_count == 1
    assert await db.get_state(config.storage_key) is None
    assert ctx.state.shown_in_current_engagement is False


@pytest.mark.asyncio
async def test_engagement_without_tip_is_ignored(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    await machine.on_engagement("engagement")
    assert await db.get_state(config.storage_key) is None


@pytest.mark.asyncio
async def test_start_clears_engagement_flag(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.shown_count = 1
    ctx.state.shown_in_current_engagement = True

    await machine.on_engagement("start")
    await machine.on_engagement("engagement")

    assert ctx.state.shown_in_current_engagement is False
    assert ctx.state.shown_count == 1
    assert await db.get_state(config.storage_key) is None


@pytest.mark.asyncio
async def test_unknown_state_resets_flag(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.shown_in_current_engagement = True

    await machine.on_engagement("bogus")

    assert ctx.state.shown_in_current_engagement is False
    assert await db.get_state(config.storage_key) is None


@pytest.mark.asyncio
async def test_repeated_acknowledgment_stays_at_max(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    for _ in range(3):
        ctx.state.shown_in_current_engagement = True
        await machine.on_engagement("engagement")

    assert await db.get_state_int(config.storage_key) == config.max_shown_count


@pytest.mark.asyncio
async def test_acknowledge_store_failure_still_resets(make_ctx, db, config):
    ctx = make_ctx()
    machine = EngagementMachine(ctx)
    ctx.state.shown_in_current_engagement = True
    await db.close()

    await machine.on_engagement("engagement")

    assert ctx.state.shown_count == config.max_shown_count
    assert ctx.state.shown_in_current_engagement is False


@pytest.mark.asyncio
async def test_result_picked_focuses_and_clears(make_ctx, host):
    host.input_value = "https://www.google.com/"
    machine = EngagementMachine(make_ctx())

    await machine.on_result_picked({"text": "tip"})

    assert host.focus_count == 1
    assert host.clear_count == 1
    assert host.input_value == ""
