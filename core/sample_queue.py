import logging
import queue
import threading
import zlib

logger = logging.getLogger(__name__)


class SampleQueue:
    """
    Telemetry processing queue.

    Features:
    - Worker pool, one bounded queue per worker
    - Device affinity: a device always lands on the same worker,
      so its samples are processed in arrival order
    - Queue backpressure handling
    - Health metrics
    """

    def __init__(
        self,
        maxsize=1000,
        worker_count=4,
        drop_policy="drop_oldest",  # drop_new / drop_oldest
    ):
        if worker_count < 1:
            raise ValueError(f"worker_count must be positive, got {worker_count}")
        if drop_policy not in ("drop_new", "drop_oldest"):
            raise ValueError(f"Unknown drop_policy: {drop_policy}")

        self.queues = [queue.Queue(maxsize=maxsize) for _ in range(worker_count)]
        self.worker_count = worker_count
        self.drop_policy = drop_policy

        self._workers = []
        self._running = False
        self._metrics_lock = threading.Lock()

        # Metrics
        self.metrics = {
            "samples_processed": 0,
            "samples_failed": 0,
            "samples_dropped": 0,
            "queue_maxsize": maxsize,
        }

    # =========================================================
    # START
    # =========================================================
    def start(self, worker_fn):
        """
        worker_fn(sample, baselines) is called on a worker thread.
        """
        if self._workers:
            return

        self._running = True

        for i, q in enumerate(self.queues):
            t = threading.Thread(
                target=self._worker_loop,
                args=(q, worker_fn),
                daemon=True,
                name=f"SampleWorker-{i+1}",
            )
            t.start()
            self._workers.append(t)

        logger.info(f"Sample queue started with {self.worker_count} workers")

    # =========================================================
    # WORKER LOOP
    # =========================================================
    def _worker_loop(self, q, worker_fn):
        while self._running:
            try:
                sample, baselines = q.get(timeout=1)
            except queue.Empty:
                continue

            try:
                worker_fn(sample, baselines)
                self._count("samples_processed")

            except Exception:
                self._count("samples_failed")
                logger.exception(
                    "Sample processing failed for device %s", sample.device_id
                )

            finally:
                q.task_done()

    # =========================================================
    # PUBLIC API
    # =========================================================
    def route(self, device_id: str) -> int:
        return zlib.crc32(device_id.encode("utf-8")) % self.worker_count

    def submit(self, sample, baselines) -> bool:
        """
        Returns False when the sample (or an older one, with drop_oldest)
        was dropped because the worker queue is full.
        """
        q = self.queues[self.route(sample.device_id)]
        job = (sample, baselines)

        try:
            q.put(job, block=False)
            return True
        except queue.Full:
            self._count("samples_dropped")

        if self.drop_policy == "drop_oldest":
            try:
                q.get_nowait()
                q.task_done()
                q.put(job, block=False)
            except (queue.Empty, queue.Full):
                logger.warning("Sample queue full — sample for %s dropped", sample.device_id)
                return False
            logger.warning("Sample queue full — oldest sample dropped")
            return True

        logger.warning("Sample queue full — sample for %s dropped", sample.device_id)
        return False

    def join(self):
        """Block until every submitted sample has been handled."""
        for q in self.queues:
            q.join()

    # =========================================================
    # METRICS
    # =========================================================
    def _count(self, key):
        with self._metrics_lock:
            self.metrics[key] += 1

    def get_status(self):
        with self._metrics_lock:
            metrics = dict(self.metrics)

        return {
            "queue_sizes": [q.qsize() for q in self.queues],
            "metrics": metrics,
            "running": self._running,
        }

    # =========================================================
    # STOP
    # =========================================================
    def stop(self):
        """
        Stop workers. Samples still queued are discarded and counted as
        dropped, so a later join() returns. Call join() first to drain.
        """
        self._running = False
        for t in self._workers:
            t.join(timeout=2)
        self._workers = []

        discarded = 0
        for q in self.queues:
            while True:
                try:
                    q.get_nowait()
                except queue.Empty:
                    break
                q.task_done()
                discarded += 1

        if discarded:
            with self._metrics_lock:
                self.metrics["samples_dropped"] += discarded
            logger.warning(f"Sample queue stopped, {discarded} queued samples discarded")

        logger.info("Sample queue stopped cleanly")
