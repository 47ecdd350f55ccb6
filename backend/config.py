import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gameofdeath.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Phase timers (seconds)
    PICKING_DURATION_SEC = int(os.environ.get('PICKING_DURATION_SEC', '90'))
    PLACING_DURATION_SEC = int(os.environ.get('PLACING_DURATION_SEC', '60'))
    FINAL_SCREEN_DURATION_SEC = int(os.environ.get('FINAL_SCREEN_DURATION_SEC', '10'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1'))
    # Placing/simulating loops per game; the last one runs the final simulation
    MAX_CYCLES = int(os.environ.get('MAX_CYCLES', '1'))
    SIM_GENERATIONS = int(os.environ.get('SIM_GENERATIONS', '30'))
    FINAL_SIM_GENERATIONS = int(os.environ.get('FINAL_SIM_GENERATIONS', '60'))
    SIM_STEP_DELAY_SEC = float(os.environ.get('SIM_STEP_DELAY_SEC', '0.5'))
    # Push every generation to the ledger, not only the last one
    PUSH_EVERY_GENERATION = _flag('PUSH_EVERY_GENERATION')
    # Crash-recovery snapshot, rewritten every tick
    STATE_FILE = os.environ.get('STATE_FILE', 'game_state.json')
    # Ledger
    # Only the in-process 'memory' ledger ships; a contract-backed backend would
    # implement services.ledger.Ledger and be selected in create_ledger
    LEDGER_BACKEND = os.environ.get('LEDGER_BACKEND', 'memory')
    LEDGER_ACCOUNT = os.environ.get('LEDGER_ACCOUNT', '0x0000000000000000000000000000000000000001')
    LEDGER_CONFIRM_TIMEOUT_SEC = float(os.environ.get('LEDGER_CONFIRM_TIMEOUT_SEC', '30'))
    # Externally rendered thumbnails, e.g. "/thumbnails/{game_id}.png"
    THUMBNAIL_URL_TEMPLATE = os.environ.get('THUMBNAIL_URL_TEMPLATE')
    # Optional: heartbeat interval for tick loop logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    ENABLE_SCHEDULER = _flag('ENABLE_SCHEDULER', '1')
