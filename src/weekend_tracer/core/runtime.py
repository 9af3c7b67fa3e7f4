"""Taichi runtime initialization.

Every module that declares Taichi fields (material arenas, the sphere table,
camera state, the render target) must be imported after the runtime is up.
Call :func:`init_runtime` once per process before importing them.
"""

import logging
from typing import Literal

import taichi as ti

logger = logging.getLogger(__name__)

Arch = Literal["cpu", "gpu", "auto"]


def init_runtime(arch: Arch = "auto", seed: int | None = None) -> str:
    """Initialize Taichi on the requested backend.

    Args:
        arch: "cpu", "gpu", or "auto" (try GPU, fall back to CPU).
        seed: Seed for ``ti.random``. None uses Taichi's default seed.

    Returns:
        The name of the backend that was initialized ("cpu" or "gpu").

    Raises:
        ValueError: If arch is not one of the supported names.
    """
    if arch not in ("cpu", "gpu", "auto"):
        raise ValueError(f"Unknown arch: {arch!r} (expected 'cpu', 'gpu' or 'auto')")

    kwargs = {"default_fp": ti.f32}
    if seed is not None:
        kwargs["random_seed"] = seed

    if arch == "cpu":
        ti.init(arch=ti.cpu, **kwargs)
        backend = "cpu"
    elif arch == "gpu":
        ti.init(arch=ti.gpu, **kwargs)
        backend = "gpu"
    else:
        try:
            ti.init(arch=ti.gpu, **kwargs)
            backend = "gpu"
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU")
            ti.init(arch=ti.cpu, **kwargs)
            backend = "cpu"

    logger.debug("Taichi initialized on %s backend (seed=%s)", backend, seed)
    return backend
