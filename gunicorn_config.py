"""
Gunicorn Configuration for Production Deployment
Yggdrasil gatekeeper

Sessions live in process memory, so the gatekeeper runs a single worker
process and scales with threads.

Usage:
    gunicorn --config gunicorn_config.py wsgi:app
"""
import os

# Server Socket
bind = os.getenv('GUNICORN_BIND', '0.0.0.0:3000')
backlog = int(os.getenv('GUNICORN_BACKLOG', '2048'))

# Worker Processes
workers = 1
worker_class = 'gthread'
threads = int(os.getenv('GUNICORN_THREADS', '8'))
max_requests = 0  # recycling the worker would drop every session
timeout = int(os.getenv('GUNICORN_TIMEOUT', '60'))
keepalive = int(os.getenv('GUNICORN_KEEPALIVE', '5'))

# Server Mechanics
daemon = False  # Don't daemonize (use systemd/supervisor/containers instead)
pidfile = os.getenv('GUNICORN_PIDFILE', None)
user = os.getenv('GUNICORN_USER', None)
group = os.getenv('GUNICORN_GROUP', None)

# Logging
accesslog = os.getenv('GUNICORN_ACCESS_LOG', '-')  # '-' for stdout
errorlog = os.getenv('GUNICORN_ERROR_LOG', '-')    # '-' for stderr
loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process Naming
proc_name = 'yggdrasil_gatekeeper'


# Server Hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Yggdrasil gatekeeper")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Yggdrasil gatekeeper is ready. Listening on: %s", bind)


def worker_int(worker):
    """Called when a worker receives the SIGINT or SIGQUIT signal."""
    worker.log.info("Worker received SIGINT or SIGQUIT")


# Security
limit_request_line = int(os.getenv('GUNICORN_LIMIT_REQUEST_LINE', '4096'))
limit_request_fields = int(os.getenv('GUNICORN_LIMIT_REQUEST_FIELDS', '100'))
limit_request_field_size = int(os.getenv('GUNICORN_LIMIT_REQUEST_FIELD_SIZE', '8190'))

# Graceful Timeout
graceful_timeout = int(os.getenv('GUNICORN_GRACEFUL_TIMEOUT', '30'))

# Environment Variables
raw_env = [
    f"FLASK_ENV={os.getenv('FLASK_ENV', 'production')}",
]
