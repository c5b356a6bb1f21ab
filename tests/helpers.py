from datetime import datetime, timedelta, timezone


class FakeClock:
    """Deterministic clock: every call is one step later than the previous one."""

    def __init__(self, start=datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        self.current = self.current + self.step
        return self.current


def code_sequence(*codes):
    remaining = iter(codes)
    return lambda: next(remaining)
