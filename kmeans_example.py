"""Example: grouping country records by selected indicators.

Builds a synthetic table of country statistics, scales the chosen
indicators into ``sc_`` columns, clusters the countries into 6 groups and
re-numbers the groups by mean population.
"""

import numpy as np
import pandas as pd
import sys
import os

# Add current directory to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from shardkmeans import (
    KMeans,
    cluster_means,
    cluster_records,
    evaluate_clustering,
    scale_features,
)

INDICATORS = ['Population', 'Area', 'GDP per capita', 'Life expectancy']


def make_country_records(n_countries: int = 180, seed: int = 7) -> pd.DataFrame:
    """Synthetic country statistics with a few income tiers."""
    rng = np.random.default_rng(seed)
    tiers = rng.integers(0, 3, size=n_countries)
    gdp_base = np.array([1500.0, 12000.0, 45000.0])
    life_base = np.array([62.0, 72.0, 81.0])

    return pd.DataFrame({
        'Country': [f"Country {i:03d}" for i in range(n_countries)],
        'Population': rng.lognormal(mean=16.0, sigma=1.5, size=n_countries),
        'Area': rng.lognormal(mean=11.5, sigma=1.8, size=n_countries),
        'GDP per capita': gdp_base[tiers] * rng.lognormal(0.0, 0.3, size=n_countries),
        'Life expectancy': life_base[tiers] + rng.normal(0.0, 2.5, size=n_countries),
    })


def records_example():
    """Cluster country records the way the map redraw does."""
    print("🌍 Country Clustering Example")
    print("=" * 50)

    records = make_country_records()
    print(f"Using {len(records)} countries with {len(INDICATORS)} indicators")

    records = scale_features(records, INDICATORS, method='minmax')
    selected = ['GDP per capita', 'Life expectancy']
    print(f"\nClustering on: {', '.join(selected)}")

    labelled, result = cluster_records(records, selected, k=6, verbose=True)

    print("\nResults:")
    print(f"  Iterations: {result.iterations}")
    print(f"  Converged: {result.converged}")
    print(f"  Inertia: {result.inertia:.4f}")

    print(f"\nMean {selected[0]} per group (0 = highest):")
    for group, mean in cluster_means(labelled, selected[0]):
        size = int((labelled['kgroup'] == group).sum())
        print(f"  Group {group}: {mean:12.1f}  ({size} countries)")

    scores = evaluate_clustering(
        labelled[[f"sc_{f}" for f in selected]].to_numpy(),
        result.labels,
        result.centroids,
    )
    print(f"\nSilhouette score: {scores['silhouette_score']:.3f}")


def estimator_example():
    """Compare naive sharding and random initialization."""
    print("\n🎯 KMeans Estimator Example")
    print("=" * 50)

    records = scale_features(make_country_records(), INDICATORS)
    X = records[[f"sc_{f}" for f in INDICATORS]].to_numpy()

    for init in ('naive_sharding', 'random'):
        kmeans = KMeans(n_clusters=6, init=init, random_state=42)
        kmeans.fit(X)
        info = kmeans.get_cluster_info()
        print(f"\n{init}:")
        print(f"  Inertia: {info['inertia']:.4f}")
        print(f"  Iterations: {info['n_iterations']} (converged: {info['converged']})")
        print(f"  Cluster sizes: {list(info['cluster_sizes'].values())}")

    new_countries = X[:5]
    print(f"\nPredicted groups for 5 countries: {kmeans.predict(new_countries)}")


if __name__ == "__main__":
    records_example()
    estimator_example()
    print("\n✅ Example completed successfully!")
