import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # The session cookie carries the member identity nonce
    SESSION_COOKIE_NAME = os.environ.get('SESSION_COOKIE_NAME', 'SESSION')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Transport liveness probe period (seconds)
    PING_INTERVAL_SEC = int(os.environ.get('PING_INTERVAL_SEC', '60'))
    # Recent broadcast lines replayed to a freshly joined transport. 0 disables.
    HISTORY_SIZE = int(os.environ.get('HISTORY_SIZE', '100'))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,http://127.0.0.1:8080',
        ).split(',')
        if origin.strip()
    ]
