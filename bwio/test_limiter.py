import pytest

from bwio.limiter import Limiter, NANOSECONDS_PER_SECOND, _truncated_div


class FakeClock:
    def __init__(self):
        self.now = 0
        self.reads = 0
        self.sleeps = []

    def __call__(self) -> int:
        self.reads += 1
        return self.now

    def advance(self, seconds: float):
        self.now += int(seconds * NANOSECONDS_PER_SECOND)

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.advance(seconds)


@pytest.fixture
def clock():
    return FakeClock()


def make_limiter(clock: FakeClock, bandwidth: int) -> Limiter:
    return Limiter(bandwidth, clock=clock, sleep=clock.sleep)


@pytest.mark.parametrize("bandwidth", [-1, 0])
def test_unlimited_bandwidth_is_a_no_op(clock, bandwidth: int):
    limiter = make_limiter(clock, bandwidth)

    limiter.limit(1 << 20, 1 << 10)

    assert clock.sleeps == []
    assert clock.reads == 0
    assert limiter.bucket == 0
    assert not limiter.initialized


def test_construction_does_not_start_the_clock(clock):
    limiter = make_limiter(clock, 1000)

    assert not limiter.initialized
    assert clock.reads == 0


def test_ensure_initialized_is_idempotent(clock):
    limiter = make_limiter(clock, 1000)
    clock.advance(5)

    limiter.ensure_initialized()
    assert limiter.initialized
    assert limiter.window_start == 5 * NANOSECONDS_PER_SECOND

    clock.advance(1)
    limiter.ensure_initialized()
    assert limiter.window_start == 5 * NANOSECONDS_PER_SECOND


def test_running_ahead_sleeps_the_penalty_and_resets(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    limiter.limit(500, 500)

    assert clock.sleeps == [0.5]
    assert limiter.bucket == 0
    assert limiter.window_start == NANOSECONDS_PER_SECOND // 2


def test_penalty_subtracts_elapsed_window_time(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()
    clock.advance(0.2)

    limiter.limit(500, 500)

    assert clock.sleeps == [pytest.approx(0.3)]


def test_penalty_truncates_to_whole_nanoseconds(clock):
    limiter = make_limiter(clock, 3)
    limiter.ensure_initialized()

    limiter.limit(1, 1)

    assert clock.sleeps == [333333333 / NANOSECONDS_PER_SECOND]


def test_behind_rate_keeps_accumulating(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    clock.advance(0.6)
    limiter.limit(500, 10)
    clock.advance(0.2)
    limiter.limit(100, 10)

    assert clock.sleeps == []
    assert limiter.bucket == 600
    assert limiter.window_start == 0


def test_stall_resets_without_sleeping(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    clock.advance(1.5)
    limiter.limit(10, 10)

    assert clock.sleeps == []
    assert limiter.bucket == 0
    assert limiter.window_start == int(1.5 * NANOSECONDS_PER_SECOND)


def test_stall_at_exactly_the_threshold_does_not_reset(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    clock.advance(1)
    limiter.limit(10, 10)

    assert limiter.bucket == 10


def test_no_burst_after_stall(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()
    clock.advance(10)

    # Without the stall reset the first 10 seconds would be credited to this chunk
    limiter.limit(100, 100)
    limiter.limit(1000, 1000)

    assert clock.sleeps == [1.0]


def test_large_buffers_raise_the_stall_threshold(clock):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    # 2500 // 1000 gives 2s of compensation, so the threshold is 3s
    clock.advance(2.5)
    limiter.limit(10, 2500)
    assert limiter.bucket == 10

    clock.advance(1)
    limiter.limit(10, 2500)
    assert limiter.bucket == 0
    assert clock.sleeps == []


@pytest.mark.parametrize("buf_size", [0, -1, -2500])
def test_degenerate_buffer_sizes_do_not_raise(clock, buf_size: int):
    limiter = make_limiter(clock, 1000)
    limiter.ensure_initialized()

    limiter.limit(0, buf_size)
    limiter.limit(1, buf_size)

    assert limiter.bucket >= 0


def test_limit_initializes_lazily(clock):
    limiter = make_limiter(clock, 1000)
    clock.advance(3)

    limiter.limit(100, 100)

    assert limiter.initialized
    assert clock.sleeps == [0.1]


@pytest.mark.parametrize(
    "numerator,denominator,expected",
    [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (0, 5, 0),
        (1, 5, 0),
        (-1, 5, 0),
    ])
def test_truncated_div_rounds_toward_zero(numerator: int, denominator: int, expected: int):
    assert _truncated_div(numerator, denominator) == expected
