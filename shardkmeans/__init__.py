"""
K-means clustering engine with naive sharding initialization.
"""

from .version import __version__
from .kmeans import (
    MAX_ITERATIONS,
    Cluster,
    InvalidInput,
    KMeans,
    KMeansResult,
    assign_labels,
    cluster,
    init_naive_sharding,
    init_random,
    shard_bounds,
    should_stop,
    update_centroids,
)
from .utils import (
    annotate_clusters,
    cluster_means,
    cluster_records,
    create_sample_dataset,
    evaluate_clustering,
    feature_matrix,
    rank_clusters,
    scale_features,
)

__all__ = [
    "MAX_ITERATIONS", "Cluster", "InvalidInput", "KMeans", "KMeansResult",
    "assign_labels", "cluster", "init_naive_sharding", "init_random",
    "shard_bounds", "should_stop", "update_centroids",
    "annotate_clusters", "cluster_means", "cluster_records", "create_sample_dataset",
    "evaluate_clustering", "feature_matrix", "rank_clusters", "scale_features",
    "__version__",
]
