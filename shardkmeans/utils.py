"""
Record-level helpers around the clustering engine.

Country records are held in a pandas DataFrame, one row per country.
Clustering reads the scaled ``sc_`` feature columns, writes the cluster
id back onto each row, and re-numbers clusters by a reporting metric.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.datasets import make_blobs
from sklearn.metrics import calinski_harabasz_score, silhouette_score
from sklearn.preprocessing import MinMaxScaler, StandardScaler

from .kmeans import InvalidInput, KMeansResult, cluster


SCALED_PREFIX = 'sc_'
CLUSTER_COLUMN = 'kgroup'

_SCALERS = {
    'minmax': MinMaxScaler,
    'standard': StandardScaler,
}


def _check_columns(df: pd.DataFrame, columns: Sequence[str]):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found in records: {missing}")


def scale_features(
    df: pd.DataFrame,
    columns: Sequence[str],
    method: str = 'minmax',
    prefix: str = SCALED_PREFIX
) -> pd.DataFrame:
    """
    Add a scaled copy of each column under ``<prefix><column>``.

    Args:
        df: Records
        columns: Raw numeric columns to scale
        method: 'minmax' (to [0, 1]) or 'standard' (zero mean, unit variance)
        prefix: Name prefix of the scaled columns

    Returns:
        A copy of the records with the scaled columns added
    """
    if method not in _SCALERS:
        raise ValueError(f"Unknown scaling method: {method}")
    columns = list(columns)
    _check_columns(df, columns)

    out = df.copy()
    if not columns:
        return out
    scaled = _SCALERS[method]().fit_transform(df[columns].astype(np.float64).to_numpy())
    for j, col in enumerate(columns):
        out[f"{prefix}{col}"] = scaled[:, j]
    return out


def feature_matrix(
    df: pd.DataFrame,
    features: Sequence[str],
    prefix: str = SCALED_PREFIX
) -> np.ndarray:
    """Matrix of the prefixed feature columns, one column per feature in order."""
    if not features:
        raise InvalidInput("At least one feature is required for clustering")
    columns = [f"{prefix}{f}" for f in features]
    _check_columns(df, columns)
    return df[columns].to_numpy(dtype=np.float64)


def annotate_clusters(
    df: pd.DataFrame,
    result: KMeansResult,
    column: str = CLUSTER_COLUMN
) -> pd.DataFrame:
    """Copy of the records with each row's cluster index in ``column``."""
    if len(df) != result.n_samples:
        raise InvalidInput(
            f"Result covers {result.n_samples} points but records have {len(df)} rows"
        )
    out = df.copy()
    out[column] = result.labels
    return out


def rank_clusters(
    df: pd.DataFrame,
    metric: str,
    column: str = CLUSTER_COLUMN
) -> pd.DataFrame:
    """
    Re-number clusters by descending mean of ``metric``.

    The cluster with the highest mean becomes 0. Tied clusters keep the
    order in which they first appear in the records; clusters with an
    all-missing metric go last. Only clusters present in the records are
    numbered.
    """
    _check_columns(df, [column, metric])
    means = df.groupby(column)[metric].mean()

    def sort_key(cluster_id):
        value = means[cluster_id]
        if pd.isna(value):
            return (1, 0.0)
        return (0, -value)

    # stable sort over first-appearance order
    order = sorted(df[column].drop_duplicates(), key=sort_key)
    mapping = {old: new for new, old in enumerate(order)}

    out = df.copy()
    out[column] = df[column].map(mapping).astype(np.int64)
    return out


def cluster_records(
    df: pd.DataFrame,
    features: Sequence[str],
    k: int,
    metric: Optional[str] = None,
    rank: bool = True,
    column: str = CLUSTER_COLUMN,
    prefix: str = SCALED_PREFIX,
    **cluster_kwargs
) -> Tuple[pd.DataFrame, KMeansResult]:
    """
    Cluster records on their scaled features and label each row.

    Args:
        df: Records holding ``<prefix><feature>`` columns
        features: Feature names to cluster on
        k: Number of clusters
        metric: Raw column used to rank clusters; defaults to the first feature
        rank: Whether to re-number clusters by ``metric``
        column: Output column for the cluster id
        prefix: Prefix of the scaled feature columns
        **cluster_kwargs: Passed through to `cluster`

    Returns:
        (labelled records, clustering result). When ranked, the ids in
        ``column`` no longer follow the result's cluster order.
    """
    X = feature_matrix(df, features, prefix=prefix)
    result = cluster(X, k, **cluster_kwargs)
    out = annotate_clusters(df, result, column=column)

    if rank:
        out = rank_clusters(out, metric or features[0], column=column)
    return out, result


def evaluate_clustering(
    X,
    labels,
    centroids: Optional[np.ndarray] = None
) -> Dict[str, Optional[float]]:
    """
    Quality metrics for a clustering.

    Silhouette and Calinski-Harabasz scores need at least two distinct
    labels and fewer labels than samples; otherwise they are None.
    """
    X = np.asarray(X, dtype=np.float64)
    labels = np.asarray(labels)
    n_labels = len(np.unique(labels))

    metrics = {
        'n_clusters': n_labels,
        'inertia': None,
        'silhouette_score': None,
        'calinski_harabasz_score': None,
    }
    if centroids is not None:
        centroids = np.asarray(centroids, dtype=np.float64)
        metrics['inertia'] = float(np.sum((X - centroids[labels]) ** 2))
    if 1 < n_labels < len(X):
        metrics['silhouette_score'] = float(silhouette_score(X, labels))
        metrics['calinski_harabasz_score'] = float(calinski_harabasz_score(X, labels))
    return metrics


def create_sample_dataset(
    n_samples: int = 300,
    n_features: int = 3,
    n_centers: int = 3,
    cluster_std: float = 0.5,
    random_state: Optional[int] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Gaussian blobs for examples and tests; returns (X, true_labels)."""
    X, y = make_blobs(
        n_samples=n_samples,
        n_features=n_features,
        centers=n_centers,
        cluster_std=cluster_std,
        random_state=random_state,
    )
    return X.astype(np.float64), y


def cluster_means(df: pd.DataFrame, metric: str, column: str = CLUSTER_COLUMN) -> List[Tuple[int, float]]:
    """(cluster id, mean of ``metric``) pairs ordered by cluster id."""
    _check_columns(df, [column, metric])
    means = df.groupby(column)[metric].mean().sort_index()
    return [(int(cid), float(value)) for cid, value in means.items()]
