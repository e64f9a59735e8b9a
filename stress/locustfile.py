"""Basic Locust profile for mixed create/follow operations.

This profile is convenient for local smoke load against a running instance.
It keeps an in-user pool of short URLs so follow traffic targets recently
created links, which also exercises the follow recorder's queue.

    SECRET=... locust -f stress/locustfile.py --host http://localhost:8080
"""

import os
import random
from urllib.parse import urlsplit

from locust import HttpUser, between, task

MAX_PATHS_PER_USER = 200
SECRET = os.environ.get("SECRET", "")


class LinkShortUser(HttpUser):
    """Mixed workload user for local functional load checks."""

    wait_time = between(0.1, 0.5)

    def on_start(self) -> None:
        self.paths: list[str] = []

    @task(2)
    def create_link(self) -> None:
        """Create new short links and keep the paths of successful ones."""
        long_url = f"https://example.com/page/{random.randint(1, 1000000)}"
        payload = {"long_url": long_url, "secret": SECRET}
        response = self.client.post("/_create", json=payload, name="POST /_create")

        if response.status_code == 200:
            short_url = response.json().get("short_url")
            if short_url:
                self.paths.append(urlsplit(short_url).path)
                if len(self.paths) > MAX_PATHS_PER_USER:
                    self.paths = self.paths[-MAX_PATHS_PER_USER:]

    @task(6)
    def follow(self) -> None:
        if not self.paths:
            self.create_link()
            return

        self.client.get(random.choice(self.paths), name="GET /:short_path", allow_redirects=False)
