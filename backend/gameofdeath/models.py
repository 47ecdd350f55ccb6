from gameofdeath import db
from gameofdeath.services.game.codec import decode_history
import json


class GameRecord(db.Model):
    """A finished game. Written once, never updated."""
    __tablename__ = 'game_record'
    game_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    winner = db.Column(db.String(8), nullable=False)  # Red, Blue, Tie
    timestamp = db.Column(db.Float, nullable=False)
    red_count = db.Column(db.Integer, nullable=False, default=0)
    blue_count = db.Column(db.Integer, nullable=False, default=0)
    # JSON list of boards, each a list of packed decimal-string chunks
    board_history = db.Column(db.Text, nullable=False, default='[]')
    thumbnail = db.Column(db.String(512), nullable=True)
    participants = db.relationship(
        'GameParticipant', back_populates='record', cascade='all, delete-orphan', lazy='selectin'
    )

    def to_dict(self, include_history=False):
        data = {
            'gameId': self.game_id,
            'winner': self.winner,
            'timestamp': self.timestamp,
            'teamCounts': {'red': self.red_count, 'blue': self.blue_count},
            'participants': sorted(p.account for p in self.participants),
            'thumbnail': self.thumbnail,
        }
        if include_history:
            data['boardHistory'] = [list(b) for b in decode_history(json.loads(self.board_history or '[]'))]
        return data


class GameParticipant(db.Model):
    __tablename__ = 'game_participant'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game_record.game_id'), nullable=False, index=True)
    # Lower-cased ledger account
    account = db.Column(db.String(64), nullable=False, index=True)
    record = db.relationship('GameRecord', back_populates='participants')

    __table_args__ = (db.UniqueConstraint('game_id', 'account', name='uq_game_participant'),)
