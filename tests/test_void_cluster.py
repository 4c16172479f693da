"""
Void-and-cluster driver: rank bijection, phase ordering, determinism,
seeding policy and error reporting.
"""

import signal
from contextlib import contextmanager

import numpy as np
import pytest

from voidcluster.errors import InvalidDimensionError, InvariantViolation, RandomSourceExhausted
from voidcluster.random_source import NumpyRandomSource, SequenceRandomSource
from voidcluster.void_cluster import VoidClusterDriver, create_blue_noise


def assert_permutation(ranks, n):
    assert ranks.shape == (n,)
    assert sorted(ranks.tolist()) == list(range(n))


@contextmanager
def time_limit(seconds):
    """Fails the enclosing test instead of hanging when the run never ends."""
    if not hasattr(signal, "SIGALRM"):
        yield
        return

    def on_alarm(signum, frame):
        raise TimeoutError(f"run did not finish within {seconds}s")

    previous = signal.signal(signal.SIGALRM, on_alarm)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_all_small_grids_terminate_with_permutation(seed):
    for w in range(1, 13):
        for h in range(1, 13):
            with time_limit(5):
                result = create_blue_noise((w, h), NumpyRandomSource(seed))
            assert_permutation(result.ranks, w * h)


@pytest.mark.parametrize("size", [(4, 5), (5, 4), (4, 7), (7, 4), (10, 3), (11, 3), (12, 3), (6, 9)])
def test_rectangular_grids_terminate(size):
    with time_limit(5):
        result = create_blue_noise(size, NumpyRandomSource(0))
    assert_permutation(result.ranks, size[0] * size[1])


def test_tied_swap_between_two_cells_stops():
    # Cells 1 and 5 sit at the same torus distance from 15; drift after
    # removing 1 can make them trade places indefinitely.
    driver = VoidClusterDriver((4, 5), SequenceRandomSource([1, 15]))
    with time_limit(5):
        ranks = driver.run()
    assert_permutation(ranks, 20)


def test_stabilize_stops_on_repeated_configuration():
    driver = VoidClusterDriver((4, 4), SequenceRandomSource([1]))
    driver._seed()
    pattern = driver.pattern

    # Force cells 1 and 5 to keep trading places
    picked = {}

    def cluster():
        picked["cluster"] = 1 if pattern.bits[1] else 5
        return picked["cluster"]

    def void():
        return 5 if picked["cluster"] == 1 else 1

    pattern.tightest_cluster = cluster
    pattern.largest_void = void

    with time_limit(5):
        driver._stabilize()

    assert driver.stabilize_iterations == 2
    assert pattern.bits[1] and not pattern.bits[5]
    assert pattern.count_ones() == 1


@pytest.mark.parametrize("size", [(1, 1), (2, 1), (2, 2), (3, 1), (1, 7), (4, 4), (5, 3), (8, 8), (16, 9)])
def test_ranks_are_a_permutation(size):
    result = create_blue_noise(size, NumpyRandomSource(7))
    assert_permutation(result.ranks, size[0] * size[1])
    assert result.noise.dtype == np.uint8
    assert result.noise.shape == (size[0] * size[1],)


def test_two_by_two_walkthrough():
    driver = VoidClusterDriver((2, 2), SequenceRandomSource([0]), record_snapshots=True)
    ranks = driver.run()

    assert driver.stabilize_iterations == 0
    assert driver.assignments == [(1, 0, 0), (2, 3, 1), (2, 1, 2), (3, 2, 3)]
    assert ranks.tolist() == [0, 2, 3, 1]
    # seed, stabilize off/on, phase 1, two phase 2 fills, one phase 3 fill
    assert len(driver.snapshots) == 7
    assert driver.snapshots[-1].all()


def test_two_by_two_noise_bytes():
    result = create_blue_noise((2, 2), SequenceRandomSource([0]))
    assert result.noise.tolist() == [0, 128, 192, 64]


def test_phase_rank_ordering():
    driver = VoidClusterDriver((12, 10), NumpyRandomSource(3))
    driver.run()

    by_phase = {1: [], 2: [], 3: []}
    for phase, _, rank in driver.assignments:
        by_phase[phase].append(rank)

    seed_count = len(by_phase[1])
    assert seed_count > 0
    # Phase 1 counts down to zero
    assert by_phase[1] == list(range(seed_count - 1, -1, -1))
    # Phases 2 and 3 count up from the seed size
    ascending = by_phase[2] + by_phase[3]
    assert ascending == list(range(seed_count, 120))
    assert by_phase[2][-1] == 60


def test_every_cell_assigned_once():
    driver = VoidClusterDriver((9, 7), NumpyRandomSource(11))
    driver.run()
    indices = [index for _, index, _ in driver.assignments]
    assert sorted(indices) == list(range(63))


def test_same_seed_same_output():
    first = create_blue_noise((16, 16), NumpyRandomSource(1234))
    second = create_blue_noise((16, 16), NumpyRandomSource(1234))
    assert first.noise.tobytes() == second.noise.tobytes()


def test_same_draw_sequence_same_output():
    draws = [5, 99, 1000, 12345, 7, 42]
    first = create_blue_noise((8, 8), SequenceRandomSource(draws))
    second = create_blue_noise((8, 8), SequenceRandomSource(draws))
    assert np.array_equal(first.noise, second.noise)
    assert np.array_equal(first.ranks, second.ranks)


def test_draws_are_reduced_modulo_cell_count():
    # 107 % 100 == 7
    a = create_blue_noise((10, 10), SequenceRandomSource([107] + list(range(20, 29))))
    b = create_blue_noise((10, 10), SequenceRandomSource([7] + list(range(20, 29))))
    assert np.array_equal(a.ranks, b.ranks)


def test_duplicate_seed_draws_are_skipped():
    driver = VoidClusterDriver((10, 10), SequenceRandomSource([7] * 10))
    seeded = driver._seed()

    assert seeded == 1
    assert driver.pattern.count_ones() == 1
    assert driver.pattern.lut[7] == pytest.approx(1.0)


def test_duplicate_seed_draws_keep_bijection():
    result = create_blue_noise((10, 10), SequenceRandomSource([7, 7, 107, 3, 3, 50, 50, 50, 99, 7]))
    assert_permutation(result.ranks, 100)


def test_seed_draw_count():
    draws = SequenceRandomSource(range(1000))
    create_blue_noise((10, 5), draws)
    assert draws.position == 5

    small = SequenceRandomSource(range(1000))
    create_blue_noise((3, 3), small)
    assert small.position == 1


def test_exhausted_random_source_propagates():
    with pytest.raises(RandomSourceExhausted):
        create_blue_noise((10, 10), SequenceRandomSource([1, 2, 3]))


@pytest.mark.parametrize("size", [(0, 0), (0, 5), (5, 0), (-1, 4)])
def test_invalid_dimensions_fail_early(size):
    source = SequenceRandomSource([1, 2, 3])
    with pytest.raises(InvalidDimensionError):
        create_blue_noise(size, source)
    assert source.position == 0


def test_invalid_dimension_is_a_value_error():
    with pytest.raises(ValueError):
        VoidClusterDriver((0, 3), NumpyRandomSource(0))


def test_missing_cluster_is_an_invariant_violation():
    driver = VoidClusterDriver((4, 4), NumpyRandomSource(0))
    # Nothing seeded: the stabilize loop has no cluster to move
    with pytest.raises(InvariantViolation):
        driver._stabilize()


def test_snapshots_only_when_requested():
    plain = create_blue_noise((4, 4), NumpyRandomSource(2))
    assert plain.snapshots == []

    recorded = create_blue_noise((4, 4), NumpyRandomSource(2), record_snapshots=True)
    assert len(recorded.snapshots) >= 16
    assert all(s.shape == (16,) for s in recorded.snapshots)
    assert np.array_equal(plain.ranks, recorded.ranks)


def test_low_frequencies_are_suppressed():
    size = 32
    result = create_blue_noise((size, size), NumpyRandomSource(5))
    texture = result.ranks.reshape(size, size).astype(np.float64)
    texture -= texture.mean()

    power = np.abs(np.fft.fft2(texture)) ** 2
    fx = np.fft.fftfreq(size) * size
    radius = np.sqrt(fx[np.newaxis, :] ** 2 + fx[:, np.newaxis] ** 2)

    low = power[(radius > 0) & (radius <= 2)].mean()
    overall = power[radius > 0].mean()
    assert low < 0.5 * overall
