"""Worker script to run Celery workers."""

from core.middleware.logging import setup_logging
from core.config import settings
from workers.celery_app import celery_app

if __name__ == "__main__":
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
    celery_app.worker_main(
        argv=[
            "worker",
            f"--loglevel={settings.log_level.lower()}",
            "--concurrency=4",
            "-Q",
            "default,emails,resume_processing",
        ]
    )
