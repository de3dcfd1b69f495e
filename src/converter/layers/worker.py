"""Background feature worker.

Runs the raw -> canonical feature mapping off the event loop so large query
responses don't stall request handling. One call hands over the complete raw
list and gets back the complete feature list; nothing is shared between the
caller and the worker.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor, ProcessPoolExecutor

from loguru import logger

from converter.layers.builder import normalize_features
from converter.layers.feature import Feature


class FeatureWorker:
    """Executes feature normalization in an executor.

    With ``processes > 0`` a process pool is used, otherwise the event loop's
    default executor.
    """

    def __init__(self, processes: int = 0) -> None:
        self._processes = processes
        self._executor: Executor | None = None

    def _get_executor(self) -> Executor | None:
        if self._processes > 0 and self._executor is None:
            logger.debug(f"Starting feature worker pool ({self._processes} processes)")
            self._executor = ProcessPoolExecutor(max_workers=self._processes)
        return self._executor

    async def process(self, raw_features: list[dict]) -> list[Feature]:
        """Normalize ``raw_features`` in the worker and return the result.

        Exceptions raised inside the worker propagate to the awaiting caller.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._get_executor(), normalize_features, list(raw_features)
        )

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
