# utils/deadline.py
import time


class MutationTimeoutError(TimeoutError):
    """事务超出预算时间"""


def bulk_edit_timeout(case_count: int, base: float, per_case: float, maximum: float) -> float:
    """按批量大小计算超时：max(基础, 每条 × 数量)，不超过上限"""
    return min(maximum, max(base, per_case * case_count))


class TransactionDeadline:
    """在事务内各处调用 check()，超时后抛出 MutationTimeoutError"""

    def __init__(self, seconds: float, clock=time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self.started_at = clock()
        self.expires_at = self.started_at + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self):
        if self.expired():
            elapsed = self._clock() - self.started_at
            raise MutationTimeoutError(
                f"bulk edit exceeded {self.seconds:.1f}s (elapsed {elapsed:.1f}s)"
            )
