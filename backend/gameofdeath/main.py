from flask import Blueprint, jsonify
from gameofdeath import get_scheduler

main = Blueprint('main', __name__)


@main.route('/')
def index():
    snap = get_scheduler().phase_snapshot()
    return jsonify({
        'status': 'ok',
        'message': 'Game of Death server',
        'gameId': snap['gameId'],
        'phase': snap['phase'],
    })
