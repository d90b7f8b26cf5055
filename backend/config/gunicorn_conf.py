# ==============================================================================
# GUNICORN CONFIGURATION
# gunicorn config.asgi:application -c config/gunicorn_conf.py
# ==============================================================================

import os
import logging
import multiprocessing

logger = logging.getLogger("gunicorn.error")

# ==============================================================================
# WORKERS
# ==============================================================================
# (2 * CPU) + 1 unless GUNICORN_WORKERS is set
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))

# ASGI worker: HTTP plus the order websockets
worker_class = "uvicorn.workers.UvicornWorker"

max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 1000))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", 100))

preload_app = True

# ==============================================================================
# SOCKET
# ==============================================================================
port = int(os.getenv("PORT", 8000))
bind = [f"0.0.0.0:{port}"]

proc_name = "deliverly-api"

# Behind Railway/AWS load balancers
forwarded_allow_ips = "*"

# ==============================================================================
# TIMEOUTS
# ==============================================================================
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 30))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", 5))

# ==============================================================================
# LOGGING (stdout/stderr for containers)
# ==============================================================================
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'


# ==============================================================================
# LIFECYCLE HOOKS
# ==============================================================================
def on_starting(server):
    logger.info(f"Starting with {workers} {worker_class} workers on 0.0.0.0:{port}")
    logger.info(f"Timeout: {timeout}s, graceful timeout: {graceful_timeout}s")


def when_ready(server):
    logger.info(f"Server is ready. Spawned {workers} workers")


def on_exit(server):
    logger.info("Server shutting down")
