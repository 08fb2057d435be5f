"""Tests for the caller-facing crawl entry point and CLI."""

import asyncio
import json

import pytest

from labyrinth import __main__ as cli
from labyrinth.config import Config
from labyrinth.errors import RejectionReason, RemoteRejection
from labyrinth.gateway import HttpGateway, InMemoryLabyrinth
from labyrinth.runner import run_crawl
from labyrinth.schemas import CrawlReport


def make_labyrinth(latency: float = 0.0) -> InMemoryLabyrinth:
    return InMemoryLabyrinth(
        start_room="start",
        topology={"start": ["left", "right"], "left": ["start"], "right": ["start"]},
        writings={"start": ("go", 0), "left": ("!", 2), "right": ("od", 1)},
        drones=["d1", "d2"],
        latency=latency,
    )


@pytest.mark.asyncio
async def test_run_crawl_returns_report_and_elapsed_time():
    report = await run_crawl(max_commands=2, gateway=make_labyrinth())

    assert isinstance(report, CrawlReport)
    assert report.message == "good!"
    assert report.report["correct"] is True
    assert report.rooms == 3
    assert report.elapsed_seconds >= 0


@pytest.mark.asyncio
async def test_run_crawl_honors_deadline():
    with pytest.raises(asyncio.TimeoutError):
        await run_crawl(gateway=make_labyrinth(latency=0.2), timeout=0.01)


@pytest.mark.asyncio
async def test_run_crawl_builds_http_gateway_for_commander(monkeypatch):
    captured = {}

    async def fake_discover(self):
        captured["commander"] = self.commander
        raise RemoteRejection(RejectionReason.UNKNOWN_COMMANDER, status=401)

    monkeypatch.setattr(HttpGateway, "discover", fake_discover)

    with pytest.raises(RemoteRejection) as excinfo:
        await run_crawl("someone@test.com")

    assert captured["commander"] == "someone@test.com"
    assert excinfo.value.as_payload() == {"err": "Commander not set! (status 401)"}


def test_parse_args_defaults():
    args = cli.parse_args([])

    assert args.commander is None
    assert args.max_commands is None
    assert args.recycle_rejected_drones is None


@pytest.mark.asyncio
async def test_cli_prints_report(monkeypatch, capsys):
    gateway = make_labyrinth()

    async def fake_run_crawl(commander, max_commands, **kwargs):
        return await run_crawl(commander, max_commands, gateway=gateway, **kwargs)

    monkeypatch.setattr(cli, "run_crawl", fake_run_crawl)

    exit_code = await cli.main(cli.parse_args(["--commander", "me@test.com"]))

    assert exit_code == 0
    assert '"message": "good!"' in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cli_reports_structured_errors(monkeypatch, capsys):
    async def failing_run_crawl(*args, **kwargs):
        raise RemoteRejection(RejectionReason.FAILURE, status=500)

    monkeypatch.setattr(cli, "run_crawl", failing_run_crawl)

    exit_code = await cli.main(cli.parse_args([]))

    assert exit_code == 1
    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    assert json.loads(last_line) == {"err": "Something went wrong! (status 500)"}


@pytest.mark.asyncio
async def test_cli_rejects_invalid_max_commands(capsys):
    exit_code = await cli.main(cli.parse_args(["--max-commands", "0"]))

    assert exit_code == 1
    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    assert "max-commands" in json.loads(last_line)["err"]


@pytest.mark.asyncio
async def test_cli_passes_overrides_without_touching_config(monkeypatch):
    captured = {}

    async def recording_run_crawl(commander, max_commands, **kwargs):
        captured.update(kwargs, max_commands=max_commands)
        raise RemoteRejection(RejectionReason.FAILURE, status=500)

    monkeypatch.setattr(cli, "run_crawl", recording_run_crawl)
    base_url_before, max_commands_before = Config.BASE_URL, Config.MAX_COMMANDS

    await cli.main(cli.parse_args(["--base-url", "http://other.test", "--max-commands", "9"]))

    assert captured["base_url"] == "http://other.test"
    assert captured["max_commands"] == 9
    assert (Config.BASE_URL, Config.MAX_COMMANDS) == (base_url_before, max_commands_before)


@pytest.mark.asyncio
async def test_run_crawl_sends_base_url_to_http_gateway(monkeypatch):
    captured = {}

    async def fake_discover(self):
        captured["base_url"] = self.base_url
        raise RemoteRejection(RejectionReason.FAILURE, status=500)

    monkeypatch.setattr(HttpGateway, "discover", fake_discover)

    with pytest.raises(RemoteRejection):
        await run_crawl("me@test.com", base_url="http://other.test/")

    assert captured["base_url"] == "http://other.test"
