"""Row-parallel render orchestration.

Rendering is split between row producers and a single aggregator:

- Rows are rendered in batches by the render_rows kernel. Each row of a batch
  is one iteration of the kernel's parallel loop, so the rows of a batch run
  concurrently on the Taichi CPU thread pool. Kernel launches are issued from
  one Python thread.
- Every finished pixel becomes a PixelMessage (row, column, summed color) sent
  over a bounded queue.Queue sized to hold the whole image.
- One aggregator thread owns the Framebuffer and is the only writer to it.

Once every batch has been produced the channel is closed with a sentinel,
also when a producer fails. The aggregator drains the channel and returns
the framebuffer, which is checked for completeness before it is handed out.
A failed or incomplete render raises RenderError; no partial framebuffer is
ever returned.

The scene and camera must be set up before render() is called.

Example:
    >>> from pathtracer.config import RenderConfig, init_taichi
    >>> init_taichi(seed=1)
    >>> from pathtracer.render.orchestrator import RenderOrchestrator
    >>> # ... build the scene and call setup_camera() ...
    >>> framebuffer = RenderOrchestrator(RenderConfig(image_width=200)).render()
"""

from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import numpy as np
import numpy.typing as npt

from pathtracer.config import RenderConfig
from pathtracer.core.integrator import render_rows
from pathtracer.errors import RenderError
from pathtracer.render.framebuffer import Framebuffer, PixelMessage

logger = logging.getLogger(__name__)

# Closes the pixel channel
_END_OF_STREAM = None

ProgressCallback = Callable[[int, int], None]


class RenderOrchestrator:
    """Renders a full image of the current scene and camera.

    Args:
        config: Image and sampling settings.
        progress_callback: Optional function called after each row batch with
            (rows_done, total_rows).
    """

    def __init__(
        self,
        config: RenderConfig,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._progress_callback = progress_callback

    @property
    def config(self) -> RenderConfig:
        return self._config

    def render(self) -> Framebuffer:
        """Render every pixel exactly once.

        Returns:
            The complete framebuffer of summed sample colors.

        Raises:
            RenderError: If a row producer fails or the framebuffer does not
                cover every pixel exactly once.
        """
        width = self._config.image_width
        height = self._config.image_height

        logger.info("Rendering image with resolution of %dx%d", width, height)
        start = time.perf_counter()

        channel: queue.Queue[PixelMessage | None] = queue.Queue(maxsize=width * height)
        framebuffer = Framebuffer(width, height)

        producer_error: Exception | None = None
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="aggregator") as executor:
            aggregation = executor.submit(self._aggregate, channel, framebuffer)
            try:
                self._produce(channel)
            except Exception as e:
                producer_error = e
            finally:
                channel.put(_END_OF_STREAM)

            # Aggregator failures (duplicate or out-of-range cells) surface here
            framebuffer = aggregation.result()

        if producer_error is not None:
            raise RenderError(f"Row producer failed: {producer_error}") from producer_error

        if not framebuffer.is_complete():
            raise RenderError(
                f"Render incomplete: {framebuffer.missing_count()} of "
                f"{width * height} pixels were never written"
            )

        logger.info("Render finished in %.2f s", time.perf_counter() - start)
        return framebuffer

    # =========================================================================
    # Producer side
    # =========================================================================

    def _render_batch(self, row_start: int, row_count: int) -> npt.NDArray[np.float32]:
        """Render rows [row_start, row_start + row_count) in parallel.

        Returns:
            Summed sample colors of shape (row_count, width, 3).
        """
        config = self._config
        out = np.zeros((row_count, config.image_width, 3), dtype=np.float32)
        render_rows(
            row_start,
            row_count,
            config.image_width,
            config.image_height,
            config.samples_per_pixel,
            config.max_depth,
            int(config.jitter),
            out,
        )
        return out

    def _produce(self, channel: queue.Queue[PixelMessage | None]) -> None:
        """Render all row batches and send every pixel to the aggregator."""
        height = self._config.image_height
        batch_size = self._config.rows_per_batch

        rows_done = 0
        for row_start in range(0, height, batch_size):
            row_count = min(batch_size, height - row_start)
            sums = self._render_batch(row_start, row_count)

            for k, row_colors in enumerate(sums):
                row = row_start + k
                for column, color in enumerate(row_colors.tolist()):
                    channel.put(PixelMessage(row, column, (color[0], color[1], color[2])))

            rows_done += row_count
            logger.debug("Scanlines remaining: %d", height - rows_done)
            if self._progress_callback is not None:
                self._progress_callback(rows_done, height)

    # =========================================================================
    # Aggregator side
    # =========================================================================

    @staticmethod
    def _aggregate(
        channel: queue.Queue[PixelMessage | None],
        framebuffer: Framebuffer,
    ) -> Framebuffer:
        """Drain the channel into the framebuffer until it is closed.

        The channel is always drained to the end so producers never block on
        a full queue. The first failure is raised afterwards: invalid
        messages as they are, anything else wrapped in RenderError.
        """
        error: Exception | None = None
        while True:
            message = channel.get()
            if message is _END_OF_STREAM:
                break
            if error is not None:
                continue
            try:
                framebuffer.write(message.row, message.column, message.color)
            except Exception as e:
                error = e

        if isinstance(error, RenderError):
            raise error
        if error is not None:
            raise RenderError(f"Aggregator failed: {error}") from error
        return framebuffer
