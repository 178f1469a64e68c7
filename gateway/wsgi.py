"""
WSGI entry point: ``gateway.wsgi:application``.

For hosts that only speak WSGI (Gunicorn sync workers, Waitress). The
shim does not send ASGI lifespan events, so the shared upstream pool is
left to process exit, and every in-flight upstream call holds a worker
thread. Serve ``gateway.main:app`` under uvicorn where possible.
"""

from asgiref.wsgi import AsgiToWsgi

from gateway.main import app

application = AsgiToWsgi(app)
