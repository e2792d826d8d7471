import time
import functools
import asyncio
import logging

logger = logging.getLogger(__name__)


def profile_stage(stage_name: str):
    """Decorator that logs how long a stage took and whether it raised."""
    def _report(t0: float, failed: bool) -> None:
        elapsed = (time.perf_counter() - t0) * 1000
        outcome = "failed" if failed else "ok"
        logger.info(f"[PERF] {stage_name}: {elapsed:.1f} ms ({outcome})")

    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                t0 = time.perf_counter()
                failed = True
                try:
                    result = await func(*args, **kwargs)
                    failed = False
                    return result
                finally:
                    _report(t0, failed)
            return wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            t0 = time.perf_counter()
            failed = True
            try:
                result = func(*args, **kwargs)
                failed = False
                return result
            finally:
                _report(t0, failed)
        return sync_wrapper
    return decorator
