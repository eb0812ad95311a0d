"""Worker pool draining the work queue into reconciliation passes."""

from __future__ import annotations

import contextvars
import logging
import threading
from typing import Any

from kubernetes import client

from .config import ShimOptions
from .resources import split_key
from .store import KubernetesStore, get_k8s_client
from .sync import CertificateSyncer
from .utils.context import with_correlation_id
from .utils.errors import PermanentError, is_conflict, is_not_found
from .utils.events import EventRecorder
from .workqueue import ItemExponentialFailureRateLimiter, RateLimitingQueue

logger = logging.getLogger(__name__)


class Controller:
    """Runs reconciliation passes for queued VirtualServer keys.

    Several workers process distinct keys in parallel. The queue ensures a
    key is handled by one worker at a time.
    """

    def __init__(
        self,
        queue: RateLimitingQueue,
        store: KubernetesStore,
        syncer: CertificateSyncer,
        workers: int = 2,
    ):
        self.queue = queue
        self.store = store
        self.syncer = syncer
        self.workers = workers
        self._threads: list[threading.Thread] = []
        self._stop = threading.Event()
        self._started = threading.Event()

    @property
    def ready(self) -> bool:
        return self._started.is_set() and not self._stop.is_set()

    def start(self) -> None:
        """Start the worker threads."""
        if self._threads:
            return
        for index in range(self.workers):
            # Each worker runs in a copy of the caller's context so that
            # kopf.event finds the operator's event queue.
            context = contextvars.copy_context()
            thread = threading.Thread(
                target=context.run,
                args=(self._run_worker,),
                name=f"vs-cm-shim-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        self._started.set()
        logger.info(f"Started {self.workers} workers")

    def stop(self, timeout: float | None = 30.0) -> None:
        """Cancel in-flight passes, shut the queue down and join workers."""
        self._stop.set()
        self.queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Workers stopped")

    def _run_worker(self) -> None:
        while self.process_next_item():
            pass

    def process_next_item(self) -> bool:
        """Process one key from the queue.

        Returns:
            False once the queue has shut down
        """
        key, shutdown = self.queue.get()
        if shutdown:
            return False
        try:
            self._handle(key)
        finally:
            self.queue.done(key)
        return True

    def _handle(self, key: Any) -> None:
        try:
            self.process_item(key)
        except PermanentError as e:
            # Retrying cannot fix the input; the next change to the
            # VirtualServer queues it again.
            logger.error(f"Not retrying {key}: {e}")
            self.queue.forget(key)
        except client.exceptions.ApiException as e:
            if is_conflict(e):
                # Someone else wrote the Certificate first; the retry re-reads it
                logger.info(f"Re-queueing {key} after conflicting write: {e.reason}")
            else:
                logger.error(
                    f"Re-queueing {key} after API error (attempt {self.queue.num_requeues(key) + 1}): {e}"
                )
            self.queue.add_rate_limited(key)
        except Exception as e:
            logger.error(
                f"Re-queueing {key} after error (attempt {self.queue.num_requeues(key) + 1}): {e}"
            )
            self.queue.add_rate_limited(key)
        else:
            self.queue.forget(key)

    def process_item(self, key: str) -> None:
        """Fetch the VirtualServer behind ``key`` and reconcile it.

        Raises:
            Exception: Whatever the reconciliation pass raises
        """
        try:
            namespace, name = split_key(key)
        except ValueError:
            logger.error(f"invalid resource key: {key}")
            return

        with with_correlation_id():
            try:
                virtual_server = self.store.get_virtual_server(namespace, name)
            except client.exceptions.ApiException as e:
                if is_not_found(e):
                    logger.info(f"virtualserver '{key}' in work queue no longer exists")
                    return
                raise

            self.syncer.sync(virtual_server, cancel=self._stop)


def new_controller(options: ShimOptions, api: client.CustomObjectsApi | None = None) -> Controller:
    """Build a controller and its collaborators from options.

    Args:
        options: Process-wide settings
        api: CustomObjectsApi to use, created from the ambient kubeconfig
            when omitted

    Returns:
        Controller, not yet started
    """
    if api is None:
        api = get_k8s_client()

    queue = RateLimitingQueue(
        ItemExponentialFailureRateLimiter(options.queue_base_delay, options.queue_max_delay)
    )
    store = KubernetesStore(api, request_timeout=options.request_timeout)
    syncer = CertificateSyncer(
        store,
        EventRecorder(),
        options.default_issuer,
        enforce_ownership=options.enforce_ownership,
    )
    return Controller(queue, store, syncer, workers=options.worker_count)
