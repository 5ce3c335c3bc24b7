"""
Cluster summaries, corpus insights and risk breakdowns.

Turns the numeric output of a run (assignments, outlier scores, the
agreement similarity matrix) into the structured payloads that are stored
as analysis results.
"""

from collections import defaultdict
from typing import Any, Iterable, Sequence

import numpy as np

from .types import ClusterAssignment, ClusterSummary, Insight, OutlierDetail, OutlierReport
from ..models.corpus import AgreementItem, ClauseItem, Favorability, RiskLevel

RISK_ORDER = [RiskLevel.LOW.value, RiskLevel.MEDIUM.value, RiskLevel.HIGH.value]


def rank_counts(
    values: Iterable[str],
    seed: Sequence[str] = (),
) -> list[tuple[str, int]]:
    """
    Count values and order them by count, highest first.

    Ties go to whichever value was seen first; ``seed`` values are
    registered up front (with count 0) in the given order.
    """
    counts: dict[str, int] = {key: 0 for key in seed}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    first_seen = {key: idx for idx, key in enumerate(counts)}
    return sorted(counts.items(), key=lambda item: (-item[1], first_seen[item[0]]))


def summarize_clusters(
    clauses: Sequence[ClauseItem],
    assignment: ClusterAssignment,
    k: int,
    sample_size: int = 5,
) -> list[ClusterSummary]:
    """Build one summary per cluster id in ``[0, k)``."""
    summaries = []
    for cluster_id in range(k):
        members = [clauses[i] for i in assignment.members(cluster_id)]

        if not members:
            summaries.append(ClusterSummary(
                cluster_id=cluster_id, size=0, dominant_type="N/A", avg_risk="N/A",
            ))
            continue

        type_ranking = rank_counts(m.clause_type for m in members)
        risk_ranking = rank_counts(
            (m.risk_level for m in members if m.risk_level in RISK_ORDER),
            seed=RISK_ORDER,
        )

        summaries.append(ClusterSummary(
            cluster_id=cluster_id,
            size=len(members),
            dominant_type=type_ranking[0][0],
            agreements=list(dict.fromkeys(m.agreement_name for m in members)),
            avg_risk=risk_ranking[0][0],
            types=dict(type_ranking),
            sample_titles=[m.title for m in members[:sample_size]],
        ))

    return summaries


def collect_outliers(
    clauses: Sequence[ClauseItem],
    report: OutlierReport,
) -> list[OutlierDetail]:
    """Flagged clauses, most anomalous first."""
    details = [
        OutlierDetail(
            clause_id=clause.id,
            title=clause.title,
            agreement_name=clause.agreement_name,
            clause_type=clause.clause_type,
            outlier_score=float(score),
        )
        for clause, score, flag in zip(clauses, report.scores, report.flags)
        if flag
    ]
    details.sort(key=lambda d: d.outlier_score, reverse=True)
    return details


def most_similar_pair(matrix: np.ndarray) -> tuple[int, int, float] | None:
    """Indices and score of the most similar off-diagonal pair (first wins ties)."""
    n = matrix.shape[0]
    best: tuple[int, int, float] | None = None
    for i in range(n):
        for j in range(i + 1, n):
            if best is None or matrix[i, j] > best[2]:
                best = (i, j, float(matrix[i, j]))
    return best


def average_similarities(matrix: np.ndarray) -> list[float]:
    """Mean similarity of each row to every other row."""
    n = matrix.shape[0]
    if n < 2:
        return [0.0] * n
    off_diagonal = matrix.sum(axis=1) - np.diag(matrix)
    return (off_diagonal / (n - 1)).tolist()


def _percent(part: int, whole: int) -> float:
    return 100.0 * part / whole if whole else 0.0


def build_insights(
    agreements: Sequence[AgreementItem],
    clauses: Sequence[ClauseItem],
    matrix: np.ndarray,
    summaries: Sequence[ClusterSummary],
    outliers: Sequence[OutlierDetail],
    k: int,
    top_types: int = 5,
) -> list[Insight]:
    """Derive the headline findings for a run."""
    insights: list[Insight] = []

    # Most similar agreements
    pair = most_similar_pair(matrix)
    if pair is not None:
        i, j, score = pair
        insights.append(Insight(
            type="similarity",
            title="Most Similar Agreements",
            description=(
                f"{agreements[i].name} and {agreements[j].name} are the most similar pair "
                f"with {score * 100:.1f}% cosine similarity."
            ),
            importance="high",
            details={"agreements": [agreements[i].name, agreements[j].name], "similarity": score},
        ))
    else:
        insights.append(Insight(
            type="similarity",
            title="Most Similar Agreements",
            description="At least two agreements are needed to compare similarity.",
            importance="high",
        ))

    # Most unique agreement
    averages = average_similarities(matrix)
    if len(averages) >= 2:
        idx = int(np.argmin(averages))
        insights.append(Insight(
            type="uniqueness",
            title="Most Unique Agreement",
            description=(
                f"{agreements[idx].name} is the most unique agreement with an average "
                f"similarity of {averages[idx] * 100:.1f}% to other agreements."
            ),
            importance="high",
            details={"agreement": agreements[idx].name, "average_similarity": averages[idx]},
        ))
    else:
        insights.append(Insight(
            type="uniqueness",
            title="Most Unique Agreement",
            description="At least two agreements are needed to measure uniqueness.",
            importance="high",
        ))

    # Risk landscape
    total = len(clauses)
    high_risk = sum(1 for c in clauses if c.risk_level == RiskLevel.HIGH.value)
    provider_favorable = sum(
        1 for c in clauses if c.favorability == Favorability.PROVIDER_FAVORABLE.value
    )
    insights.append(Insight(
        type="risk",
        title="Risk Landscape",
        description=(
            f"{high_risk} out of {total} clauses ({_percent(high_risk, total):.0f}%) are rated "
            f"high risk. {provider_favorable} clauses ({_percent(provider_favorable, total):.0f}%) "
            f"favor the provider."
        ),
        importance="medium",
        details={
            "high_risk_count": high_risk,
            "high_risk_percent": _percent(high_risk, total),
            "provider_favorable_count": provider_favorable,
            "provider_favorable_percent": _percent(provider_favorable, total),
        },
    ))

    # Clause coverage
    type_ranking = rank_counts(c.clause_type for c in clauses)
    top = type_ranking[:top_types]
    insights.append(Insight(
        type="coverage",
        title="Clause Coverage",
        description=(
            "The most common clause types are: "
            + ", ".join(f"{t} ({c})" for t, c in top)
            + f". {len(type_ranking)} unique clause types found across all agreements."
        ),
        importance="medium",
        details={
            "top_types": [{"type": t, "count": c} for t, c in top],
            "unique_types": len(type_ranking),
        },
    ))

    # Unusual clauses
    if outliers:
        worst = outliers[0]
        description = (
            f"{len(outliers)} outlier clauses detected. Most unusual: "
            f"\"{worst.title}\" from {worst.agreement_name}."
        )
        details: dict[str, Any] = {"count": len(outliers), "most_unusual": worst.to_dict()}
    else:
        description = (
            "No significant outliers detected - all clauses align well with their clusters."
        )
        details = {"count": 0}
    insights.append(Insight(
        type="outliers",
        title="Unusual Clauses",
        description=description,
        importance="high",
        details=details,
    ))

    # Clause groupings; max() keeps the lowest cluster id on ties
    largest = max(summaries, key=lambda s: s.size)
    insights.append(Insight(
        type="clusters",
        title="Clause Groupings",
        description=(
            f"{k} natural clusters found. Largest cluster has {largest.size} clauses, "
            f"dominated by \"{largest.dominant_type}\" type."
        ),
        importance="medium",
        details={
            "k": k,
            "largest_cluster_id": largest.cluster_id,
            "largest_cluster_size": largest.size,
            "dominant_type": largest.dominant_type,
        },
    ))

    return insights


def build_risk_breakdown(
    agreements: Sequence[AgreementItem],
    clauses: Sequence[ClauseItem],
) -> dict[str, Any]:
    """High-risk and provider-favorable counts per agreement and per clause type."""
    totals: dict[str, int] = defaultdict(int)
    high_by_agreement: dict[str, int] = defaultdict(int)
    favorable_by_agreement: dict[str, int] = defaultdict(int)

    for clause in clauses:
        totals[clause.agreement_id] += 1
        if clause.risk_level == RiskLevel.HIGH.value:
            high_by_agreement[clause.agreement_id] += 1
        if clause.favorability == Favorability.PROVIDER_FAVORABLE.value:
            favorable_by_agreement[clause.agreement_id] += 1

    high_by_type = rank_counts(
        c.clause_type for c in clauses if c.risk_level == RiskLevel.HIGH.value
    )

    return {
        "high_risk_by_agreement": [
            {
                "name": a.name,
                "provider": a.provider,
                "high_risk_count": high_by_agreement[a.id],
                "total_clauses": totals[a.id],
            }
            for a in agreements
        ],
        "high_risk_by_type": [{"type": t, "count": c} for t, c in high_by_type],
        "provider_favorable_by_agreement": [
            {"name": a.name, "count": favorable_by_agreement[a.id]}
            for a in agreements
        ],
    }
