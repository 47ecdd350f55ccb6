import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from gameofdeath.services.ledger import GameConcludedError, LedgerError
from .automaton import advance
from .board import Board, empty_board
from .codec import pack, unpack
from .scoring import compute_winner, invasion_counts
from .state import PersistedState, Phase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerSettings:
    picking_duration: int = 90
    placing_duration: int = 60
    final_duration: int = 10
    max_cycles: int = 1
    generations: int = 30
    final_generations: int = 60
    step_delay: float = 0.5
    push_every_generation: bool = False

    @classmethod
    def from_config(cls, config) -> 'SchedulerSettings':
        return cls(
            picking_duration=int(config.get('PICKING_DURATION_SEC', 90)),
            placing_duration=int(config.get('PLACING_DURATION_SEC', 60)),
            final_duration=int(config.get('FINAL_SCREEN_DURATION_SEC', 10)),
            max_cycles=max(1, int(config.get('MAX_CYCLES', 1))),
            generations=int(config.get('SIM_GENERATIONS', 30)),
            final_generations=int(config.get('FINAL_SIM_GENERATIONS', 60)),
            step_delay=float(config.get('SIM_STEP_DELAY_SEC', 0.5)),
            push_every_generation=bool(config.get('PUSH_EVERY_GENERATION', False)),
        )


class PhaseScheduler:
    """Drive one game at a time through picking, placing, simulating and final.

    ``tick()`` is called once per second by the runtime loop. Timed phases
    count down; when one expires the matching transition is handed to
    ``spawn`` and runs while further ticks keep arriving. The transition
    latch keeps a second transition from starting until the first returns.

    Every ledger mutation goes through the transaction pipeline and is
    awaited before the in-memory phase moves on, so a failed call leaves
    the scheduler where it was and the next tick retries it. The one
    exception is "game already concluded", which always resets.
    """

    def __init__(self, ledger, pipeline, records, state_store,
                 emit: Optional[Callable[[str, object], None]] = None,
                 settings: Optional[SchedulerSettings] = None,
                 spawn: Optional[Callable] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.ledger = ledger
        self.pipeline = pipeline
        self.records = records
        self.state_store = state_store
        self.settings = settings or SchedulerSettings()
        self._emit = emit or (lambda event, payload: None)
        self._spawn = spawn or (lambda fn, *args: fn(*args))
        self._sleep = sleep
        self._lock = threading.RLock()
        self._in_transition = False
        self.participants: Set[str] = set()

        restored = state_store.load()
        if restored is not None:
            self.phase = restored.phase
            self.time_left = restored.time_left
            self.cycle_count = restored.cycle_count
            self.board_history: List[Board] = list(restored.board_history)
            self.game_id = restored.game_id or records.next_game_id()
            self.sim_base = min(restored.sim_base, len(self.board_history))
            self.board_pushed = restored.board_pushed
            logger.info(
                "[state-restored] game=%s phase=%s time_left=%s cycle=%s history=%s",
                self.game_id, self.phase.value, self.time_left, self.cycle_count, len(self.board_history),
            )
        else:
            self.phase = Phase.PICKING
            self.time_left = self.settings.picking_duration
            self.cycle_count = 0
            self.board_history = []
            self.game_id = records.next_game_id()
            self.sim_base = 0
            self.board_pushed = False

    # ---- tick ----

    def tick(self) -> None:
        with self._lock:
            if self.phase is not Phase.SIMULATING and self.time_left > 0:
                self.time_left -= 1
            due = self.time_left == 0 and not self._in_transition
            if due:
                self._in_transition = True
                phase = self.phase
            payload = self._phase_payload()
            self._persist()
        self._emit('phaseUpdated', payload)
        if due:
            self._spawn(self._transition, phase)

    @property
    def in_transition(self) -> bool:
        return self._in_transition

    def _transition(self, phase: Phase) -> None:
        logger.info("[transition] game=%s from=%s cycle=%s", self.game_id, phase.value, self.cycle_count)
        try:
            if phase is Phase.PICKING:
                self._start_placing()
            elif phase is Phase.PLACING:
                self._start_simulating()
            elif phase is Phase.SIMULATING:
                # A failed step or a restart mid-simulation; pick up where it stopped
                self._run_simulation()
            else:
                self._finish_game()
        except GameConcludedError:
            logger.info("[game-concluded] game=%s during %s, resetting", self.game_id, phase.value)
            try:
                self._reset()
            except Exception:
                logger.exception("[transition-error] game=%s reset failed, will retry next tick", self.game_id)
        except Exception:
            logger.exception("[transition-error] game=%s phase=%s will retry next tick", self.game_id, phase.value)
        finally:
            with self._lock:
                self._in_transition = False

    # ---- transitions ----

    def _start_placing(self) -> None:
        self._push_phase(Phase.PLACING)
        self._enter(Phase.PLACING, self.settings.placing_duration)

    def _start_simulating(self) -> None:
        self._push_phase(Phase.SIMULATING)
        with self._lock:
            self.sim_base = len(self.board_history)
            self.board_pushed = False
        self._enter(Phase.SIMULATING, 0)
        self._run_simulation()

    def _run_simulation(self) -> None:
        final = self._is_final_cycle()
        self._simulate(self.settings.final_generations if final else self.settings.generations)
        self._finish_simulation()

    def _finish_simulation(self) -> None:
        if self._is_final_cycle():
            self._conclude()
            return
        self._push_phase(Phase.PICKING)
        with self._lock:
            self.cycle_count += 1
        self._enter(Phase.PICKING, self.settings.picking_duration)

    def _conclude(self) -> None:
        with self._lock:
            board = self.board_history[-1] if self.board_history else None
        if board is None:
            board = unpack(self.ledger.get_board())
        winner = compute_winner(board)
        red_invasion, blue_invasion = invasion_counts(board)
        self._push_phase(Phase.FINAL)
        logger.info(
            "[winner] game=%s winner=%s red_invasion=%s blue_invasion=%s",
            self.game_id, winner.value, red_invasion, blue_invasion,
        )
        self._emit('winner', {'winner': winner.value, 'redInvasion': red_invasion, 'blueInvasion': blue_invasion})
        with self._lock:
            history = list(self.board_history)
            participants = set(self.participants)
            game_id = self.game_id
        self.records.record_game(game_id, winner, history, participants)
        with self._lock:
            self.participants.clear()
        self._enter(Phase.FINAL, self.settings.final_duration)

    def _finish_game(self) -> None:
        self._await(self.pipeline.submit(self.ledger.end_game))
        self._reset()

    def _reset(self) -> None:
        next_id = self.game_id + 1
        self._await(self.pipeline.submit(self.ledger.new_game, next_id))
        with self._lock:
            self.game_id = next_id
            self.phase = Phase.PICKING
            self.time_left = self.settings.picking_duration
            self.cycle_count = 0
            self.board_history = []
            self.sim_base = 0
            self.board_pushed = False
            self.participants.clear()
            self.state_store.delete()
            payload = self._phase_payload()
        logger.info("[reset] game=%s started", next_id)
        self._emit('phaseUpdated', payload)
        self._emit('boardUpdated', list(empty_board()))

    def _simulate(self, generations: int) -> None:
        """Advance ``generations`` steps from the ledger board, then push the result.

        Resumable: boards already in history since ``sim_base`` count as done,
        so a retry continues from the last one instead of starting over.
        """
        with self._lock:
            done = self.board_history[self.sim_base:]
            board = done[-1] if done else None
        if board is None:
            board = unpack(self.ledger.get_board())
            self._append(board)
            done = [board]
        if len(done) > 1:
            logger.info("[simulation-resumed] game=%s at generation=%s", self.game_id, len(done) - 1)
        for generation in range(len(done) - 1, generations):
            self._sleep(self.settings.step_delay)
            board = advance(board)
            self._append(board)
            if self.settings.push_every_generation and generation < generations - 1:
                self._await(self.pipeline.submit(self.ledger.server_overwrite_board, pack(board)))
        if not self.board_pushed:
            self._await(self.pipeline.submit(self.ledger.server_overwrite_board, pack(board)))
            with self._lock:
                self.board_pushed = True
        logger.info("[simulated] game=%s generations=%s history=%s", self.game_id, generations, len(self.board_history))

    # ---- helpers ----

    def _is_final_cycle(self) -> bool:
        return self.cycle_count >= self.settings.max_cycles - 1

    def _push_phase(self, phase: Phase) -> None:
        self._await(self.pipeline.submit(self.ledger.set_phase, phase.ledger_value))
        logger.info("[phase] game=%s ledger phase=%s", self.game_id, phase.value)

    def _await(self, future):
        return future.result()

    def _enter(self, phase: Phase, time_left: int) -> None:
        with self._lock:
            self.phase = phase
            self.time_left = time_left
            payload = self._phase_payload()
        self._emit('phaseUpdated', payload)

    def _append(self, board: Board) -> None:
        with self._lock:
            self.board_history.append(board)
        self._emit('boardUpdated', list(board))

    def _phase_payload(self) -> dict:
        return {'phase': self.phase.value, 'timeLeft': self.time_left}

    def _persist(self) -> None:
        state = PersistedState(
            phase=self.phase,
            time_left=self.time_left,
            cycle_count=self.cycle_count,
            board_history=list(self.board_history),
            game_id=self.game_id,
            sim_base=self.sim_base,
            board_pushed=self.board_pushed,
        )
        try:
            self.state_store.save(state)
        except OSError:
            logger.exception("[state-write-failed] path=%s", self.state_store.path)

    # ---- participants & read-only views ----

    def add_participant(self, account: str) -> int:
        """Track ``account`` for this game's record; it must already be on a team."""
        team = int(self.ledger.get_team(account))
        if team == 0:
            raise ValueError(f"{account} has not joined a team")
        with self._lock:
            self.participants.add(account.lower())
        return team

    def phase_snapshot(self) -> dict:
        with self._lock:
            data = self._phase_payload()
            data['cycleCount'] = self.cycle_count
            data['gameId'] = self.game_id
            return data

    def history_snapshot(self) -> List[Board]:
        with self._lock:
            return list(self.board_history)

    def current_board(self) -> Board:
        """Live board: the ledger's, or the latest generation while simulating."""
        with self._lock:
            latest = self.board_history[-1] if self.board_history else None
            simulated = self.phase in (Phase.SIMULATING, Phase.FINAL)
        if simulated and latest is not None:
            return latest
        try:
            return unpack(self.ledger.get_board())
        except LedgerError:
            logger.exception("[board-read-failed] game=%s", self.game_id)
            return latest if latest is not None else empty_board()


def make_spawner(app, socketio):
    """Run transitions in the app context; inline under TESTING."""
    def spawn(fn, *args):
        def _run():
            with app.app_context():
                fn(*args)
        if app.config.get('TESTING'):
            _run()
        else:
            socketio.start_background_task(_run)
    return spawn


def start_scheduler(app, socketio, scheduler: PhaseScheduler) -> None:
    """Start the one-second tick loop as a background task.

    No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    if not app.config.get('ENABLE_SCHEDULER', True):
        app.logger.info("[scheduler-disabled]")
        return

    interval = float(app.config.get('TICK_INTERVAL_SEC', 1))
    try:
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
    except (TypeError, ValueError):
        hb = 0

    def _loop():
        ticks = 0
        next_at = time.monotonic()
        while True:
            next_at += interval
            socketio.sleep(max(0.0, next_at - time.monotonic()))
            with app.app_context():
                try:
                    scheduler.tick()
                except Exception:
                    app.logger.exception("[tick-error] game=%s", scheduler.game_id)
            ticks += 1
            if hb > 0 and ticks % hb == 0:
                snap = scheduler.phase_snapshot()
                app.logger.info(
                    f"[timer-heartbeat] game={snap['gameId']} phase={snap['phase']} remaining={snap['timeLeft']}s"
                )

    app.logger.info(f"[scheduler-start] interval={interval}s game={scheduler.game_id} phase={scheduler.phase.value}")
    socketio.start_background_task(_loop)
