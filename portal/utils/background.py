import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


class BackgroundRunner:
    """Fire-and-forget jobs that run after the response has been sent.

    Jobs get an application context. Their failures are logged and never
    reach the client; nothing is retried.
    """

    def __init__(self, app=None):
        self.app = None
        self.executor = None
        self.sync = False
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.sync = bool(app.config.get('BACKGROUND_SYNC'))
        if not self.sync:
            self.executor = ThreadPoolExecutor(
                max_workers=app.config.get('BACKGROUND_WORKERS', 2),
                thread_name_prefix='portal-background'
            )
        app.extensions['background_runner'] = self

    def submit(self, job, *args, **kwargs):
        description = getattr(job, '__name__', repr(job))
        if self.sync:
            self._run(description, job, args, kwargs)
            return None
        return self.executor.submit(self._run, description, job, args, kwargs)

    def _run(self, description, job, args, kwargs):
        with self.app.app_context():
            try:
                job(*args, **kwargs)
            except Exception:
                logger.exception("Background job %s failed", description)

    def shutdown(self, wait=True):
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
