from celery import Celery
from rental_quotes.core.config import settings

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"rental_quotes.services.tasks.expire_quotes": {"queue": "quotes"}}
celery_app.conf.beat_schedule = {
    "expire-quotes-hourly": {
        "task": "rental_quotes.services.tasks.expire_quotes",
        "schedule": 3600.0,
    },
}

@celery_app.task(bind=True, max_retries=3)
def expire_quotes(self):
    import asyncio
    from rental_quotes.services.tasks_internal import expire_quotes_async

    try:
        return asyncio.run(expire_quotes_async())
    except Exception as e:
        retry_kwargs = {"countdown": 2 ** self.request.retries}
        raise self.retry(exc=e, **retry_kwargs)
