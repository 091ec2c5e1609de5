"""Admission control lifespan event."""

import threading

from minihttpd.core.lifespan import BaseEvent


class AdmissionEvent(BaseEvent[threading.BoundedSemaphore]):
    """Bounds connections that are running or waiting for a worker."""

    name = "admission"

    def startup(self) -> threading.BoundedSemaphore:
        return threading.BoundedSemaphore(self.settings.admission_capacity)
