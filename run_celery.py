#!/usr/bin/env python3
"""
Start a delivery worker: python run_celery.py [extra celery worker args]
"""
import sys

from celery_app import DELIVERY_QUEUE, celery_app
from relay.config import settings

if __name__ == "__main__":
    celery_app.worker_main([
        "worker",
        "--loglevel", settings.log_level,
        "--queues", DELIVERY_QUEUE,
        *sys.argv[1:],
    ])
