"""Gunicorn production configuration for wastetrack.main:app."""
import multiprocessing
import os

wsgi_app = "wastetrack.main:app"
chdir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend")

bind = os.getenv("BIND", "0.0.0.0:8000")
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
# Decide holds a row lock for its whole transaction; keep requests short.
timeout = 60
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
preload_app = True
accesslog = "-"
errorlog = "-"
loglevel = "info"
