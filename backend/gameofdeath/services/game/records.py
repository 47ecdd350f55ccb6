"""Append-only history of finished games."""

import json
import logging
import time
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from gameofdeath import db
from gameofdeath.models import GameParticipant, GameRecord
from .board import Board
from .codec import encode_history
from .scoring import Winner

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    pass


class RecordStore:
    def __init__(self, ledger, thumbnail_renderer: Optional[Callable[[int, Board], Optional[str]]] = None,
                 clock=time.time):
        self.ledger = ledger
        self.thumbnail_renderer = thumbnail_renderer
        self.clock = clock

    def next_game_id(self) -> int:
        try:
            latest = db.session.query(db.func.max(GameRecord.game_id)).scalar()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("[records-unreadable] assuming empty store")
            return 1
        return (latest or 0) + 1

    def record_game(self, game_id: int, winner: Winner, board_history: List[Board],
                    participants: Iterable[str]) -> dict:
        existing = db.session.get(GameRecord, game_id)
        if existing is not None:
            logger.warning("[record-exists] game=%s already recorded, keeping original", game_id)
            return existing.to_dict()

        red_count = int(self.ledger.team_a_count())
        blue_count = int(self.ledger.team_b_count())
        thumbnail = None
        if self.thumbnail_renderer and board_history:
            thumbnail = self.thumbnail_renderer(game_id, board_history[-1])

        record = GameRecord(
            game_id=game_id,
            winner=Winner(winner).value,
            timestamp=self.clock(),
            red_count=red_count,
            blue_count=blue_count,
            board_history=json.dumps(encode_history(board_history)),
            thumbnail=thumbnail,
        )
        for account in sorted({a.lower() for a in participants}):
            record.participants.append(GameParticipant(account=account))
        try:
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        logger.info(
            "[record] game=%s winner=%s red=%s blue=%s participants=%s",
            game_id, record.winner, red_count, blue_count, len(record.participants),
        )
        return record.to_dict()

    def list_records(self) -> List[dict]:
        return self._query(GameRecord.query.order_by(GameRecord.game_id.desc()))

    def records_for(self, account: str) -> List[dict]:
        query = (
            GameRecord.query.join(GameParticipant)
            .filter(GameParticipant.account == account.lower())
            .order_by(GameRecord.game_id.desc())
        )
        return self._query(query)

    def get_record(self, game_id: int) -> dict:
        record = db.session.get(GameRecord, game_id)
        if record is None:
            raise RecordNotFound(f"no record for game {game_id}")
        return record.to_dict(include_history=True)

    def _query(self, query) -> List[dict]:
        try:
            return [r.to_dict() for r in query.all()]
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("[records-unreadable] treating store as empty")
            return []


def url_thumbnail_renderer(template: str) -> Callable[[int, Board], str]:
    """Reference an image rendered elsewhere, e.g. ``/thumbnails/{game_id}.png``."""
    def render(game_id: int, board: Board) -> str:
        return template.format(game_id=game_id)
    return render
