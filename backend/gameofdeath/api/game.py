from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError

from gameofdeath import get_scheduler
from gameofdeath.services.game.records import RecordNotFound
from gameofdeath.services.ledger import LedgerError


game = Blueprint('game', __name__)


@game.route('/board', methods=['GET'])
def get_board():
    return jsonify({'board': list(get_scheduler().current_board())})


@game.route('/phase', methods=['GET'])
def get_phase():
    return jsonify(get_scheduler().phase_snapshot())


@game.route('/history', methods=['GET'])
def get_history():
    history = get_scheduler().history_snapshot()
    return jsonify({'boardHistory': [list(b) for b in history]})


@game.route('/allRecords', methods=['GET'])
def all_records():
    return jsonify({'records': get_scheduler().records.list_records()})


@game.route('/records/<string:account>', methods=['GET'])
def records_for_account(account):
    return jsonify({'records': get_scheduler().records.records_for(account)})


@game.route('/record/<int:game_id>', methods=['GET'])
def get_record(game_id):
    try:
        record = get_scheduler().records.get_record(game_id)
    except RecordNotFound as exc:
        return jsonify({'error': str(exc)}), 404
    except SQLAlchemyError:
        current_app.logger.exception(f"[record-read-failed] game={game_id}")
        return jsonify({'error': 'Record store unavailable'}), 503
    return jsonify(record)


@game.route('/team-counts', methods=['GET'])
def team_counts():
    ledger = get_scheduler().ledger
    try:
        return jsonify({'red': int(ledger.team_a_count()), 'blue': int(ledger.team_b_count())})
    except LedgerError as exc:
        current_app.logger.error(f"[ledger-read-failed] team counts: {exc}")
        return jsonify({'error': str(exc)}), 502


@game.route('/team/<string:account>', methods=['GET'])
def get_team(account):
    try:
        team = int(get_scheduler().ledger.get_team(account))
    except LedgerError as exc:
        current_app.logger.error(f"[ledger-read-failed] team of {account}: {exc}")
        return jsonify({'error': str(exc)}), 502
    return jsonify({'team': team})


@game.route('/participants', methods=['POST'])
def add_participant():
    data = request.get_json(silent=True) or {}
    account = data.get('address')
    if not account:
        return jsonify({'error': 'address is required'}), 400
    try:
        team = get_scheduler().add_participant(account)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except LedgerError as exc:
        current_app.logger.error(f"[ledger-read-failed] team of {account}: {exc}")
        return jsonify({'error': str(exc)}), 502
    return jsonify({'address': account.lower(), 'team': team}), 201
