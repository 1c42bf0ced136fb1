import os


def _csv(value):
    items = [v.strip() for v in value.split(',') if v.strip()]
    if items == ['*']:
        return '*'
    return items


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    PORT = int(os.environ.get('PORT', '3000'))
    # Expiry sweep (seconds)
    SWEEP_INTERVAL_SEC = int(os.environ.get('SWEEP_INTERVAL_SEC', str(30 * 60)))
    ROOM_TTL_SEC = int(os.environ.get('ROOM_TTL_SEC', str(2 * 60 * 60)))
    # Optional: heartbeat interval for sweeper debug logs (sec). 0 disables.
    SWEEP_HEARTBEAT_SEC = int(os.environ.get('SWEEP_HEARTBEAT_SEC', '0'))
    # Number of lock shards in the room store
    STORE_SHARDS = int(os.environ.get('STORE_SHARDS', '16'))
    CORS_ORIGINS = _csv(os.environ.get('CORS_ORIGINS', '*'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
