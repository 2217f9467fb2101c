import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import shardkmeans.kmeans as km
from shardkmeans.kmeans import (
    MAX_ITERATIONS,
    InvalidInput,
    assign_labels,
    check_dataset,
    cluster,
    init_naive_sharding,
    init_random,
    shard_bounds,
    should_stop,
    update_centroids,
)


SCENARIO = [[1, 1, 1], [1, 2, 1], [-1, -1, -1], [-1, -1, -1.5], [-1, -1, -1.5]]


def two_tight_groups():
    return np.array([
        [0.0, 0.0, 0.0],
        [0.1, 0.0, 0.0],
        [0.0, 0.1, 0.1],
        [10.0, 10.0, 10.0],
        [10.1, 10.0, 10.0],
        [10.0, 10.1, 9.9],
    ])


def test_naive_sharding_is_deterministic():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(37, 4))
    first = init_naive_sharding(X, 5)
    second = init_naive_sharding(X, 5)
    assert first.shape == (5, 4)
    assert np.array_equal(first, second)


def test_naive_sharding_uses_shard_means():
    X = np.arange(14, dtype=float).reshape(7, 2)
    centroids = init_naive_sharding(X, 3)
    # step = 2: rows [0, 2), [2, 4), [4, 7)
    assert np.allclose(centroids[0], X[0:2].mean(axis=0))
    assert np.allclose(centroids[1], X[2:4].mean(axis=0))
    assert np.allclose(centroids[2], X[4:7].mean(axis=0))


@pytest.mark.parametrize("n,k", [(10, 3), (5, 2), (100, 7), (8, 8), (9, 1)])
def test_shard_windows_partition_range(n, k):
    bounds = shard_bounds(n, k)
    assert len(bounds) == k
    assert bounds[0][0] == 0
    assert bounds[-1][1] == n
    for (_, end), (start, _) in zip(bounds, bounds[1:]):
        assert end == start
    step = n // k
    for start, end in bounds[:-1]:
        assert end - start == step
    assert bounds[-1][1] - bounds[-1][0] == n - step * (k - 1)


def test_shard_bounds_rejects_more_shards_than_rows():
    with pytest.raises(InvalidInput):
        shard_bounds(3, 5)
    with pytest.raises(InvalidInput):
        init_naive_sharding(np.zeros((3, 2)), 5)


def test_init_random_picks_distinct_copied_rows():
    X = np.arange(20, dtype=float).reshape(10, 2)
    centroids = init_random(X, 4, random_state=3)
    assert centroids.shape == (4, 2)
    assert len({tuple(row) for row in centroids}) == 4
    for row in centroids:
        assert any(np.array_equal(row, x) for x in X)

    centroids[0, 0] = 999.0
    assert not np.any(X == 999.0)


def test_init_random_is_reproducible_with_seed():
    X = np.random.default_rng(1).normal(size=(50, 3))
    assert np.array_equal(init_random(X, 5, random_state=11), init_random(X, 5, random_state=11))


def test_init_random_rejects_more_centroids_than_rows():
    with pytest.raises(InvalidInput):
        init_random(np.zeros((3, 2)), 4)


def test_init_random_can_take_every_row():
    X = np.arange(12, dtype=float).reshape(6, 2)
    centroids = init_random(X, 6, random_state=np.random.default_rng(5))
    assert sorted(map(tuple, centroids)) == sorted(map(tuple, X))


@pytest.mark.parametrize("k", [1, 2, 3, 7])
def test_assignment_covers_every_point_once(k):
    rng = np.random.default_rng(42)
    X = rng.normal(size=(40, 3))
    clusters = assign_labels(X, init_naive_sharding(X, k))
    assert len(clusters) == k
    indices = [i for c in clusters for i in c.point_indices]
    assert sorted(indices) == list(range(40))
    for c in clusters:
        assert c.points.shape == (len(c.point_indices), 3)
        assert np.array_equal(c.points, X[c.point_indices])


def test_assignment_picks_nearest_centroid():
    X = np.array([[0.0, 0.0], [1.0, 0.0], [9.0, 10.0], [10.0, 10.0]])
    centroids = np.array([[0.0, 0.0], [10.0, 10.0]])

    # squared distances to (centroid 0, centroid 1)
    expected = [
        (0 + 0, 100 + 100),
        (1 + 0, 81 + 100),
        (81 + 100, 1 + 0),
        (100 + 100, 0 + 0),
    ]
    clusters = assign_labels(X, centroids)
    for i, (d0, d1) in enumerate(expected):
        owner = 0 if d0 < d1 else 1
        assert i in clusters[owner].point_indices
    assert clusters[0].point_indices == [0, 1]
    assert clusters[1].point_indices == [2, 3]
    assert np.array_equal(clusters[0].centroid, centroids[0])


def test_assignment_tie_goes_to_first_centroid():
    X = np.array([[5.0, 5.0], [0.0, 0.0], [10.0, 10.0]])
    centroids = np.array([[0.0, 0.0], [10.0, 10.0]])
    clusters = assign_labels(X, centroids)
    # [5, 5] is 50 away from both
    assert clusters[0].point_indices == [0, 1]
    assert clusters[1].point_indices == [2]

    duplicated = np.array([[1.0, 1.0], [1.0, 1.0]])
    clusters = assign_labels(X, duplicated)
    assert clusters[0].point_indices == [0, 1, 2]
    assert clusters[1].point_indices == []


def test_update_recovers_empty_cluster_from_dataset():
    X = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    centroids = np.array([[0.5, 0.5], [100.0, 100.0]])
    clusters = assign_labels(X, centroids)
    assert len(clusters[1]) == 0

    new_centroids = update_centroids(X, clusters, 2, random_state=np.random.default_rng(0))
    assert new_centroids.shape == (2, 2)
    assert np.array_equal(new_centroids[0], [0.5, 0.5])
    assert any(np.array_equal(new_centroids[1], x) for x in X)

    new_centroids[1] += 50.0
    assert X.max() == 1.0


def test_update_reseeding_is_reproducible():
    X = np.random.default_rng(2).normal(size=(20, 2))
    clusters = assign_labels(X, np.array([[0.0, 0.0], [1e6, 1e6], [-1e6, -1e6]]))
    first = update_centroids(X, clusters, 3, random_state=9)
    second = update_centroids(X, clusters, 3, random_state=9)
    assert np.array_equal(first, second)


def test_should_stop_rules():
    c = np.array([[1.0, 2.0], [3.0, 4.0]])
    assert not should_stop(None, c, 0)
    assert not should_stop(None, c, MAX_ITERATIONS)
    assert should_stop(None, c, MAX_ITERATIONS + 1)
    assert should_stop(c.copy(), c, 3)
    assert not should_stop(c + np.array([[0.0, 0.0], [0.0, 1e-12]]), c, 3)
    assert should_stop(c, c + 1.0, 3, max_iters=2)


def test_scenario_two_clusters():
    result = cluster(SCENARIO, 2)
    assert result.converged
    assert result.clusters[0].point_indices == [0, 1]
    assert result.clusters[1].point_indices == [2, 3, 4]
    assert np.allclose(result.centroids[0], [1.0, 1.5, 1.0])
    assert np.allclose(result.centroids[1], [-1.0, -1.0, -4.0 / 3.0])
    assert result.labels.tolist() == [0, 0, 1, 1, 1]


def test_well_separated_groups_converge():
    X = two_tight_groups()
    result = cluster(X, 2)
    assert result.converged
    assert result.iterations < MAX_ITERATIONS
    assert sorted(map(sorted, (c.point_indices for c in result.clusters))) == [[0, 1, 2], [3, 4, 5]]

    # one more manual iteration leaves the centroids where they are
    clusters = assign_labels(X, result.centroids)
    again = update_centroids(X, clusters, 2)
    assert np.array_equal(again, result.centroids)


def test_random_init_converges_on_blobs():
    rng = np.random.default_rng(4)
    X = np.vstack([
        rng.normal(loc=0.0, scale=0.2, size=(30, 2)),
        rng.normal(loc=8.0, scale=0.2, size=(30, 2)),
    ])
    result = cluster(X, 2, use_naive_sharding=False, random_state=21)
    again = cluster(X, 2, use_naive_sharding=False, random_state=21)
    assert result.converged
    assert sorted(result.cluster_sizes) == [30, 30]
    assert np.array_equal(result.centroids, again.centroids)


def test_coincident_points_fall_into_first_cluster():
    X = np.zeros((6, 2))
    result = cluster(X, 3, random_state=0)
    assert result.converged
    assert result.cluster_sizes == [6, 0, 0]
    assert np.array_equal(result.centroids, np.zeros((3, 2)))


def test_iteration_cap_stops_loop(monkeypatch):
    calls = []
    real_update = km.update_centroids

    def drifting_update(X, clusters, k, random_state=None):
        calls.append(len(calls))
        return real_update(X, clusters, k, random_state) + len(calls) * 1e-3

    monkeypatch.setattr(km, 'update_centroids', drifting_update)
    result = km.cluster(two_tight_groups(), 2)
    assert result.iterations == MAX_ITERATIONS + 1
    assert len(calls) == MAX_ITERATIONS + 1
    assert not result.converged


def test_zero_iteration_cap_runs_one_pass():
    result = cluster(SCENARIO, 2, max_iters=0)
    assert result.iterations == 1
    assert not result.converged
    assert sorted(i for c in result.clusters for i in c.point_indices) == [0, 1, 2, 3, 4]


def test_negative_iteration_cap_rejected():
    with pytest.raises(ValueError):
        cluster(SCENARIO, 2, max_iters=-1)


@pytest.mark.parametrize("dataset,k", [
    ([], 1),
    ([[1]], 5),
    ([[1], [2]], 2),
    ([[], []], 1),
    ([[1, 2], [3]], 1),
    ([[1.0, float('nan')], [2.0, 3.0]], 1),
    ([1, 2, 3], 1),
    ([['1'], ['2'], ['3']], 2),
    ([['a', 'b'], ['c', 'd'], ['e', 'f']], 1),
    ([[1], [2], [3]], 0),
])
def test_invalid_input(dataset, k):
    with pytest.raises(InvalidInput):
        cluster(dataset, k)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        check_dataset([], 1)


def test_inputs_are_not_mutated():
    X = two_tight_groups()
    snapshot = X.copy()
    result = cluster(X, 2)
    result.centroids[0] += 1.0
    result.clusters[0].points[0] += 1.0
    assert np.array_equal(X, snapshot)


def test_verbose_prints_progress(capsys):
    cluster(SCENARIO, 2, verbose=True)
    out = capsys.readouterr().out
    assert "Clustering 5 samples into 2 clusters" in out
    assert "Converged after 1 iterations" in out

    cluster(SCENARIO, 2)
    assert capsys.readouterr().out == ""


def test_result_inertia():
    result = cluster(SCENARIO, 2)
    X = np.array(SCENARIO, dtype=float)
    expected = sum(
        np.sum((X[c.point_indices] - result.centroids[i]) ** 2)
        for i, c in enumerate(result.clusters)
    )
    assert result.inertia == pytest.approx(expected)
