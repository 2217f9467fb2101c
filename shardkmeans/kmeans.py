"""
K-means clustering engine.

Partitions a numeric dataset into k clusters with Lloyd's algorithm:

- Naive sharding (default) or random sampling centroid initialization
- Nearest-centroid assignment by squared Euclidean distance
- Mean update with random re-seeding of empty clusters
- Stops when centroids stop changing or the iteration cap is exceeded
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np


MAX_ITERATIONS = 50
DEFAULT_INIT = 'naive_sharding'
INIT_METHODS = ('naive_sharding', 'random')

RandomState = Optional[Union[int, np.random.Generator]]


class InvalidInput(ValueError):
    """Raised when a dataset cannot be clustered with the requested k."""


@dataclass
class Cluster:
    """Members of one cluster and the centroid they were assigned against."""
    points: np.ndarray  # shape (m, d)
    point_indices: List[int]
    centroid: np.ndarray  # shape (d,)

    def __len__(self) -> int:
        return len(self.point_indices)


@dataclass
class KMeansResult:
    """Outcome of a single `cluster` call."""
    clusters: List[Cluster]
    centroids: np.ndarray  # shape (k, d)
    iterations: int
    converged: bool

    @property
    def n_samples(self) -> int:
        return sum(len(c) for c in self.clusters)

    @property
    def labels(self) -> np.ndarray:
        """Cluster index of every dataset row, in dataset order."""
        labels = np.empty(self.n_samples, dtype=np.int64)
        for cluster_id, c in enumerate(self.clusters):
            labels[c.point_indices] = cluster_id
        return labels

    @property
    def cluster_sizes(self) -> List[int]:
        return [len(c) for c in self.clusters]

    @property
    def inertia(self) -> float:
        """Within-cluster sum of squared distances to the final centroids."""
        total = 0.0
        for cluster_id, c in enumerate(self.clusters):
            if len(c):
                total += float(np.sum((c.points - self.centroids[cluster_id]) ** 2))
        return total


def check_dataset(dataset, k: int) -> np.ndarray:
    """
    Validate a dataset against a cluster count.

    Args:
        dataset: 2-D array-like of shape (n_samples, n_features)
        k: Requested number of clusters

    Returns:
        The dataset as a float64 array

    Raises:
        InvalidInput: empty, ragged or non-numeric dataset, rows without features,
            non-finite values, k < 1, or n_samples <= k
    """
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 1:
        raise InvalidInput(f"Number of clusters must be a positive integer, got {k!r}")

    try:
        raw = np.asarray(dataset)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Dataset is not a numeric matrix: {e}") from e
    if raw.dtype.kind not in "biuf":
        raise InvalidInput(f"Dataset is not a numeric matrix (dtype {raw.dtype})")
    X = raw.astype(np.float64)

    if X.size == 0 and X.ndim <= 1:
        raise InvalidInput("Dataset is empty")
    if X.ndim != 2:
        raise InvalidInput(f"Dataset must be 2-dimensional, got shape {X.shape}")
    if X.shape[1] == 0:
        raise InvalidInput("Dataset rows have no features")
    if not np.all(np.isfinite(X)):
        raise InvalidInput("Dataset contains NaN or infinite values")
    if X.shape[0] <= k:
        raise InvalidInput(
            f"Dataset has {X.shape[0]} samples, need more than {k} for {k} clusters"
        )
    return X


def shard_bounds(n_samples: int, k: int) -> List[Tuple[int, int]]:
    """Return the [start, end) window of each of the k shards."""
    step = n_samples // k
    if step == 0:
        raise InvalidInput(f"Cannot split {n_samples} samples into {k} shards")

    bounds = []
    for i in range(k):
        start = step * i
        end = n_samples if i + 1 == k else step * (i + 1)
        bounds.append((start, end))
    return bounds


def init_naive_sharding(X: np.ndarray, k: int) -> np.ndarray:
    """
    Naive sharding initialization.

    Splits the rows into k contiguous shards, in input order, and uses
    each shard's mean as a starting centroid. The last shard takes the
    remainder. Input is not shuffled, so the result only depends on row
    order.
    """
    X = np.asarray(X, dtype=np.float64)
    centroids = np.empty((k, X.shape[1]), dtype=np.float64)
    for i, (start, end) in enumerate(shard_bounds(len(X), k)):
        centroids[i] = X[start:end].mean(axis=0)
    return centroids


def init_random(X: np.ndarray, k: int, random_state: RandomState = None) -> np.ndarray:
    """Pick k distinct rows at random and copy them as starting centroids."""
    X = np.asarray(X, dtype=np.float64)
    n_samples = len(X)
    if k > n_samples:
        raise InvalidInput(f"Cannot sample {k} distinct rows from {n_samples} samples")

    rng = np.random.default_rng(random_state)
    indices = []
    while len(indices) < k:
        index = int(rng.integers(0, n_samples))
        if index not in indices:
            indices.append(index)
    return X[indices].copy()


def _squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # X: (n_samples, n_features), centroids: (k, n_features) -> (n_samples, k)
    diffs = X[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return np.sum(diffs ** 2, axis=2)


def nearest_centroids(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the closest centroid for each row; ties go to the lowest index."""
    # argmin returns the first occurrence of the minimum
    return np.argmin(_squared_distances(X, centroids), axis=1)


def assign_labels(X: np.ndarray, centroids: np.ndarray) -> List[Cluster]:
    """
    Assign every point to its nearest centroid.

    Args:
        X: Data of shape (n_samples, n_features)
        centroids: Current centroids of shape (k, n_features)

    Returns:
        One Cluster per centroid, in centroid order, holding the member
        points and their row indices in X
    """
    X = np.asarray(X, dtype=np.float64)
    centroids = np.asarray(centroids, dtype=np.float64)
    labels = nearest_centroids(X, centroids)

    clusters = []
    for cluster_id in range(len(centroids)):
        indices = np.flatnonzero(labels == cluster_id)
        clusters.append(Cluster(
            points=X[indices],
            point_indices=indices.tolist(),
            centroid=centroids[cluster_id].copy(),
        ))
    return clusters


def update_centroids(
    X: np.ndarray,
    clusters: List[Cluster],
    k: int,
    random_state: RandomState = None
) -> np.ndarray:
    """
    Recompute centroids as the mean of their members.

    A cluster with no members gets a random row of the whole dataset as
    its new centroid. That centroid may attract nothing again on the next
    pass; the iteration cap bounds the churn.
    """
    X = np.asarray(X, dtype=np.float64)
    rng = np.random.default_rng(random_state)
    centroids = np.empty((k, X.shape[1]), dtype=np.float64)

    for cluster_id in range(k):
        members = clusters[cluster_id]
        if len(members) > 0:
            centroids[cluster_id] = np.asarray(members.points).mean(axis=0)
        else:
            centroids[cluster_id] = X[int(rng.integers(0, len(X)))]
    return centroids


def should_stop(
    old_centroids: Optional[np.ndarray],
    centroids: np.ndarray,
    iterations: int,
    max_iters: int = MAX_ITERATIONS
) -> bool:
    """Stop past the iteration cap or once centroids are exactly unchanged."""
    if iterations > max_iters:
        return True
    if old_centroids is None or len(old_centroids) == 0:
        return False
    for old, new in zip(old_centroids, centroids):
        if not np.array_equal(old, new):
            return False
    return True


def cluster(
    dataset,
    k: int,
    use_naive_sharding: bool = True,
    max_iters: int = MAX_ITERATIONS,
    random_state: RandomState = None,
    verbose: bool = False
) -> KMeansResult:
    """
    Run k-means on a dataset.

    Args:
        dataset: 2-D array-like of shape (n_samples, n_features),
            n_samples must exceed k
        k: Number of clusters
        use_naive_sharding: Seed centroids from contiguous shard means
            instead of random rows
        max_iters: Iteration cap
        random_state: Seed or Generator for random initialization and
            empty-cluster re-seeding
        verbose: Whether to print progress information

    Returns:
        KMeansResult with clusters ordered by cluster index

    Raises:
        InvalidInput: if the dataset cannot be clustered into k clusters
    """
    X = check_dataset(dataset, k)
    if max_iters < 0:
        raise ValueError(f"max_iters must be non-negative, got {max_iters}")
    rng = np.random.default_rng(random_state)

    if verbose:
        init_name = 'naive sharding' if use_naive_sharding else 'random'
        print(f"Clustering {X.shape[0]} samples into {k} clusters ({init_name} init)...")

    if use_naive_sharding:
        centroids = init_naive_sharding(X, k)
    else:
        centroids = init_random(X, k, rng)

    iterations = 0
    old_centroids = None
    clusters = []
    while not should_stop(old_centroids, centroids, iterations, max_iters):
        old_centroids = centroids
        iterations += 1

        clusters = assign_labels(X, centroids)
        centroids = update_centroids(X, clusters, k, rng)

        if verbose and iterations % 10 == 0:
            print(f"Iteration {iterations}, cluster sizes: {[len(c) for c in clusters]}")

    # Only false when the cap was exceeded
    converged = iterations <= max_iters

    if verbose:
        if converged:
            print(f"Converged after {iterations} iterations")
        else:
            print(f"Stopped at iteration cap ({max_iters}) without converging")

    return KMeansResult(
        clusters=clusters,
        centroids=centroids,
        iterations=iterations,
        converged=converged,
    )


class KMeans:
    """
    K-means estimator over the `cluster` engine.

    Features:
    - Naive sharding or random initialization
    - Exact-equality convergence with an iteration cap
    - Empty-cluster recovery from a seedable random source
    """

    def __init__(
        self,
        n_clusters: int,
        max_iters: int = MAX_ITERATIONS,
        init: str = DEFAULT_INIT,
        random_state: RandomState = None,
        verbose: bool = False
    ):
        """
        Initialize K-means clustering.

        Args:
            n_clusters: Number of clusters
            max_iters: Maximum number of iterations
            init: Initialization method ('naive_sharding' or 'random')
            random_state: Random seed or Generator for reproducibility
            verbose: Whether to print progress information
        """
        if init not in INIT_METHODS:
            raise ValueError(f"Unknown initialization method: {init}")

        self.n_clusters = n_clusters
        self.max_iters = max_iters
        self.init = init
        self.random_state = random_state
        self.verbose = verbose

        # Results
        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = None
        self.converged_ = None
        self.clusters_ = None

    def fit(self, X) -> 'KMeans':
        """
        Fit K-means clustering to the data.

        Args:
            X: Input data of shape (n_samples, n_features)

        Returns:
            self
        """
        result = cluster(
            X,
            self.n_clusters,
            use_naive_sharding=self.init == 'naive_sharding',
            max_iters=self.max_iters,
            random_state=self.random_state,
            verbose=self.verbose,
        )

        self.cluster_centers_ = result.centroids
        self.labels_ = result.labels
        self.inertia_ = result.inertia
        self.n_iter_ = result.iterations
        self.converged_ = result.converged
        self.clusters_ = result.clusters

        if self.verbose:
            print(f"Final inertia: {self.inertia_:.2f}")

        return self

    def predict(self, X) -> np.ndarray:
        """
        Predict cluster labels for new data.

        Args:
            X: Input data of shape (n_samples, n_features)

        Returns:
            Cluster labels
        """
        if self.cluster_centers_ is None:
            raise ValueError("Model must be fitted before prediction")

        X = np.atleast_2d(np.asarray(X, dtype=np.float64))
        if X.ndim != 2:
            raise ValueError(f"Expected 2-dimensional input, got shape {X.shape}")
        if X.shape[1] != self.cluster_centers_.shape[1]:
            raise ValueError(
                f"Expected {self.cluster_centers_.shape[1]} features, got {X.shape[1]}"
            )
        return nearest_centroids(X, self.cluster_centers_)

    def fit_predict(self, X) -> np.ndarray:
        """Fit the model and return the cluster label of each sample."""
        return self.fit(X).labels_

    def get_cluster_info(self) -> dict:
        """Get information about the clustering results."""
        if self.cluster_centers_ is None:
            raise ValueError("Model must be fitted first")

        cluster_sizes = np.bincount(self.labels_, minlength=self.n_clusters)

        return {
            'n_clusters': self.n_clusters,
            'inertia': self.inertia_,
            'n_iterations': self.n_iter_,
            'converged': self.converged_,
            'cluster_sizes': {i: int(size) for i, size in enumerate(cluster_sizes)},
            'avg_cluster_size': float(np.mean(cluster_sizes)),
            'std_cluster_size': float(np.std(cluster_sizes)),
            'min_cluster_size': int(np.min(cluster_sizes)),
            'max_cluster_size': int(np.max(cluster_sizes))
        }
