import os


def _origins(raw):
    if not raw or raw.strip() == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Listening address for run.py
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT') or '3000')
    # '*' or a comma separated list; shared by Flask-CORS and Socket.IO
    CORS_ALLOWED_ORIGINS = _origins(os.environ.get('CORS_ALLOWED_ORIGINS', '*'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Players needed before the host may start
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
