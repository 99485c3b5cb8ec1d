"""Tests for the player actor driven through the fake backend."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from clue_play.services.commands import (
    CommandQueue,
    Done,
    Load,
    Next,
    Play,
    Prev,
    SetMode,
    Stop,
)
from clue_play.services.fake_backend import FakePlayerLauncher, FakePlayerProcess
from clue_play.services.playback_backend import PAUSE_TOKEN, QUIT_TOKEN
from clue_play.services.player_service import PlayerService
from clue_play.services.player_state import HISTORY_LIMIT, PlayerState
from clue_play.services.supervisor import PlaybackSupervisor

A, B, C = Path("/music/a.mp3"), Path("/music/b.mp3"), Path("/music/c.mp3")


def _run(coro):
    """Run async service scenario from sync test functions."""
    return asyncio.run(coro)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Harness:
    """Player service wired to a fake launcher, pumped by hand."""

    def __init__(
        self,
        *,
        launcher: FakePlayerLauncher | None = None,
        state: PlayerState | None = None,
    ) -> None:
        self.queue = CommandQueue()
        self.clock = FakeClock()
        self.launcher = launcher or FakePlayerLauncher()
        self.announced: list[Path] = []
        self.supervisor = PlaybackSupervisor(
            launcher=self.launcher,
            queue=self.queue,
            announce=self._announce,
            clock=self.clock,
        )
        self.service = PlayerService(
            queue=self.queue,
            supervisor=self.supervisor,
            clock=self.clock,
            initial_state=state,
        )

    @property
    def state(self) -> PlayerState:
        return self.service.state

    @property
    def process(self) -> FakePlayerProcess:
        process = self.launcher.last
        assert process is not None
        return process

    async def _announce(self, song: Path) -> None:
        self.announced.append(song)

    async def settle(self, rounds: int = 10) -> None:
        """Let watcher tasks run and apply whatever they queued."""
        for _ in range(rounds):
            await asyncio.sleep(0)
            while self.queue.pending():
                await self.service.dispatch(await self.queue.receive())

    async def finish_current(self, exit_code: int = 0) -> None:
        self.process.finish(exit_code)
        await self.settle()


def _circular(*songs: Path) -> PlayerState:
    return PlayerState(mode="circular", songs=list(songs))


def test_play_starts_first_song_and_announces_it() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Play())
        await h.settle()
        assert h.state.should_play is True
        assert h.state.current == A
        assert h.state.is_playing
        assert h.state.last_start == h.clock.now
        assert h.announced == [A]
        await h.supervisor.shutdown()

    _run(run())


def test_play_while_playing_toggles_pause() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        await h.service.dispatch(Play())
        await h.service.dispatch(Play())
        assert h.process.received == [PAUSE_TOKEN]
        assert h.process.paused is True
        assert len(h.launcher.spawned) == 1
        await h.supervisor.shutdown()

    _run(run())


def test_finished_song_moves_to_history_and_auto_advances() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Play())
        await h.finish_current()
        assert list(h.state.history) == [A]
        assert h.state.current == B
        assert h.process.closed is False
        assert h.launcher.spawned[0].closed is True
        await h.supervisor.shutdown()

    _run(run())


def test_abnormal_exit_advances_like_normal_exit(caplog) -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Play())
        await h.finish_current(exit_code=2)
        assert list(h.state.history) == [A]
        assert h.state.current == B
        await h.supervisor.shutdown()

    with caplog.at_level(logging.ERROR, logger="clue_play.services.supervisor"):
        _run(run())
    assert any("exited with status 2" in record.message for record in caplog.records)


def test_stop_requests_quit_and_goes_idle_on_done() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Play())
        await h.service.dispatch(Stop())
        assert h.state.should_play is False
        assert h.process.received == [QUIT_TOKEN]
        # Still Playing until the exit is observed.
        assert h.state.current == A
        await h.settle()
        assert h.state.current is None
        assert h.state.process is None
        assert h.state.last_start is None
        assert list(h.state.history) == [A]
        assert len(h.launcher.spawned) == 1

    _run(run())


def test_stop_when_idle_only_clears_intent() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        h.state.should_play = True
        await h.service.dispatch(Stop())
        assert h.state.should_play is False
        assert h.launcher.spawned == []

    _run(run())


def test_next_while_playing_quits_and_starts_following_song() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B, C))
        await h.service.dispatch(Play())
        first = h.process
        await h.service.dispatch(Next())
        assert first.received == [QUIT_TOKEN]
        await h.settle()
        assert h.state.current == B
        assert list(h.state.history) == [A]
        await h.supervisor.shutdown()

    _run(run())


def test_next_when_idle_starts_directly() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Next())
        assert h.state.current == A
        assert h.state.should_play is True
        await h.supervisor.shutdown()

    _run(run())


def test_nothing_to_play_clears_intent() -> None:
    async def run() -> None:
        h = Harness()
        await h.service.dispatch(Play())
        assert h.state.should_play is False
        assert h.state.current is None
        assert h.launcher.spawned == []

    _run(run())


def test_sequence_mode_stops_after_one_pass() -> None:
    async def run() -> None:
        h = Harness(state=PlayerState(mode="sequence", songs=[A, B]))
        await h.service.dispatch(Play())
        await h.finish_current()
        await h.finish_current()
        assert h.state.should_play is False
        assert h.state.current is None
        assert list(h.state.history) == [A, B]
        await h.service.dispatch(Play())
        assert h.state.current == A
        await h.supervisor.shutdown()

    _run(run())


def test_spawn_failure_leaves_player_idle(caplog) -> None:
    async def run() -> None:
        h = Harness(
            launcher=FakePlayerLauncher(fail_with=FileNotFoundError("no mpv")),
            state=_circular(A),
        )
        await h.service.dispatch(Play())
        assert h.state.should_play is False
        assert h.state.current is None
        assert h.state.process is None
        assert h.state.last_start is None
        assert h.announced == []

    with caplog.at_level(logging.ERROR, logger="clue_play.services.supervisor"):
        _run(run())
    assert any("Failed to start player" in record.message for record in caplog.records)


def test_history_is_bounded_and_evicts_oldest() -> None:
    async def run() -> None:
        songs = [Path(f"/music/{index:03d}.mp3") for index in range(HISTORY_LIMIT + 5)]
        h = Harness(state=PlayerState(mode="circular", songs=songs))
        await h.service.dispatch(Play())
        for _ in range(HISTORY_LIMIT + 5):
            await h.finish_current()
            assert len(h.state.history) <= HISTORY_LIMIT
        assert len(h.state.history) == HISTORY_LIMIT
        assert h.state.history[0] == songs[5]
        assert h.state.history[-1] == songs[-1]
        await h.supervisor.shutdown()

    _run(run())


def test_prev_early_with_empty_history_replays_current() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        await h.service.dispatch(Play())
        first = h.process
        h.clock.now += 0.1
        await h.service.dispatch(Prev())
        assert h.state.playlist == [A]
        assert first.received == [QUIT_TOKEN]
        await h.settle()
        assert h.state.current == A
        assert h.state.playlist == []
        # The interrupted play is not recorded as history.
        assert list(h.state.history) == []
        await h.supervisor.shutdown()

    _run(run())


def test_prev_early_restores_previous_song_before_current() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B, C))
        await h.service.dispatch(Play())
        await h.finish_current()
        assert h.state.current == B
        h.clock.now += 1.0
        await h.service.dispatch(Prev())
        assert h.state.playlist == [B, A]
        assert list(h.state.history) == []
        await h.settle()
        assert h.state.current == A
        await h.finish_current()
        assert h.state.current == B
        await h.supervisor.shutdown()

    _run(run())


def test_prev_late_restarts_current_only() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B, C))
        await h.service.dispatch(Play())
        await h.finish_current()
        h.clock.now += 2.5
        await h.service.dispatch(Prev())
        assert h.state.playlist == [B]
        assert list(h.state.history) == [A]
        await h.settle()
        assert h.state.current == B
        await h.supervisor.shutdown()

    _run(run())


def test_prev_when_idle_plays_last_history_entry() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        h.state.history.extend([A, B])
        await h.service.dispatch(Prev())
        assert h.state.current == B
        assert list(h.state.history) == [A]
        assert h.state.should_play is True
        await h.supervisor.shutdown()

    _run(run())


def test_prev_with_nothing_to_go_back_to_does_nothing() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        await h.service.dispatch(Prev())
        assert h.launcher.spawned == []
        assert h.state.should_play is False

    _run(run())


def test_control_write_failure_is_swallowed() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        await h.service.dispatch(Play())
        # Player died but its Done has not been applied yet.
        h.process.finish(0)
        await h.service.dispatch(Stop())
        assert h.state.should_play is False
        await h.settle()
        assert h.state.current is None

    _run(run())


def test_load_replaces_and_resets_cursor() -> None:
    async def run() -> None:
        h = Harness(state=PlayerState(songs=[A, B], position=2))
        await h.service.dispatch(Load((C,)))
        assert h.state.songs == [C]
        assert h.state.position == 0

    _run(run())


def test_load_append_extends_and_keeps_cursor() -> None:
    async def run() -> None:
        h = Harness(state=PlayerState(songs=[A], position=1))
        await h.service.dispatch(Load((B, C), append=True))
        assert h.state.songs == [A, B, C]
        assert h.state.position == 1

    _run(run())


def test_set_mode_replaces_mode() -> None:
    async def run() -> None:
        h = Harness()
        await h.service.dispatch(SetMode("sequence"))
        assert h.state.mode == "sequence"

    _run(run())


def test_confirm_is_acknowledged_after_stop_applied() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        actor = asyncio.create_task(h.service.run())
        h.queue.send(Play())
        h.queue.send(Stop())
        await h.queue.confirm()
        assert h.state.should_play is False
        assert h.process.received == [QUIT_TOKEN]
        actor.cancel()
        try:
            await actor
        except asyncio.CancelledError:
            pass
        await h.supervisor.shutdown()

    _run(run())


def test_actor_applies_done_from_watcher() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A, B))
        actor = asyncio.create_task(h.service.run())
        h.queue.send(Play())
        await h.queue.confirm()
        h.process.finish()
        for _ in range(10):
            await asyncio.sleep(0)
        await h.queue.confirm()
        assert h.state.current == B
        assert list(h.state.history) == [A]
        actor.cancel()
        try:
            await actor
        except asyncio.CancelledError:
            pass
        await h.supervisor.shutdown()

    _run(run())


def test_stray_done_while_idle_is_harmless() -> None:
    async def run() -> None:
        h = Harness(state=_circular(A))
        await h.service.dispatch(Done())
        assert h.state.current is None
        assert list(h.state.history) == []
        assert h.launcher.spawned == []

    _run(run())
