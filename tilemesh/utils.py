import logging
import time
from functools import wraps

# Configuration defaults
TEXEL_BIAS = 8192.0  # Denominator of the inward texture coordinate bias
COLLISION_ONLY_PROPERTY = 'unity:collisionOnly'
FILL_RULE = 'nonzero'
CIRCLE_SEGMENTS = 8  # Segments per quarter circle when polygonising circles
OBJ_HEADER = 'Wavefront OBJ file automatically generated by tilemesh'

PREVIEW_GRID_SIZE = 3.0
PREVIEW_MAX_SIDE = 16384  # Largest preview canvas side in pixels
PREVIEW_FALLBACK_SIZE = 1024
PREVIEW_MAX_SCALE = 8.0


def timed(func):
    """Decorator to log the execution time of a function."""
    log = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        t1 = time.perf_counter()
        log.debug(f"[TIMING] {func.__name__:25s}: {t1 - t0:0.3f}s")
        return result

    return wrapper


def format_number(value) -> str:
    """Formats a coordinate for text output: integral values without a fraction, '-0' as '0'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)
