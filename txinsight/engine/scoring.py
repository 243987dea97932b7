"""
Heuristic complexity and risk scoring for analysed transactions.

File: txinsight/engine/scoring.py
"""

import logging
from typing import Optional, Sequence

from ..shared.constants import (
    ACTION_SWAP,
    COMPLEXITY_LEVELS,
    COMPLEXITY_MAX_LEVEL,
    COMPLEXITY_WEIGHTS,
    RISK_THRESHOLDS,
    SECURITY_WARNING,
)
from ..shared.schemas import (
    AnalysisSummary,
    AnyTransfer,
    ComplexityLevel,
    RiskLevel,
    SecurityObservation,
)

logger = logging.getLogger(__name__)


def calculate_complexity_points(
    transfers: Sequence[AnyTransfer],
    interactions: Sequence[str],
    security_info: Sequence[SecurityObservation],
    action_types: Sequence[str],
) -> int:
    """Raw complexity score before it is bucketed into a category."""
    score = len(transfers) * COMPLEXITY_WEIGHTS['transfer']
    score += len(interactions) * COMPLEXITY_WEIGHTS['interaction']
    score += len(security_info) * COMPLEXITY_WEIGHTS['security_observation']
    if len(set(action_types)) > 1:
        score += COMPLEXITY_WEIGHTS['multiple_action_types']
    return score


def calculate_complexity_score(
    transfers: Sequence[AnyTransfer],
    interactions: Sequence[str],
    security_info: Sequence[SecurityObservation],
    action_types: Sequence[str],
) -> ComplexityLevel:
    """
    Bucket a transaction into Simple / Moderate / Complex / Very Complex.

    Returns:
        Complexity category
    """
    score = calculate_complexity_points(transfers, interactions, security_info, action_types)
    for upper_bound, level in COMPLEXITY_LEVELS:
        if score <= upper_bound:
            return level
    return COMPLEXITY_MAX_LEVEL


def calculate_risk_factors(
    transfers: Sequence[AnyTransfer],
    interactions: Sequence[str],
    security_info: Sequence[SecurityObservation],
    action_types: Sequence[str],
) -> int:
    """Count weighted risk factors."""
    risk_factors = 0
    if len(interactions) > RISK_THRESHOLDS['max_interactions']:
        risk_factors += 1
    if ACTION_SWAP in action_types:
        risk_factors += 1
    if any(observation.observation_type == SECURITY_WARNING for observation in security_info):
        risk_factors += RISK_THRESHOLDS['warning_weight']
    if len(transfers) > RISK_THRESHOLDS['max_transfers']:
        risk_factors += 1
    if len(set(action_types)) > 1:
        risk_factors += 1
    return risk_factors


def calculate_risk_level(
    transfers: Sequence[AnyTransfer],
    interactions: Sequence[str],
    security_info: Sequence[SecurityObservation],
    action_types: Sequence[str],
) -> RiskLevel:
    """Map risk factors to Low (0), Medium (1-2) or High (3+)."""
    risk_factors = calculate_risk_factors(transfers, interactions, security_info, action_types)
    if risk_factors == 0:
        return RiskLevel.LOW
    if risk_factors <= 2:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def count_unique_tokens(transfers: Sequence[AnyTransfer]) -> int:
    """Distinct token contracts among transfers; the native currency counts once."""
    token_addresses = set()
    for transfer in transfers:
        address: Optional[str] = transfer.token.address
        token_addresses.add(address.lower() if address else None)
    return len(token_addresses)


def build_summary(
    transfers: Sequence[AnyTransfer],
    interactions: Sequence[str],
    security_info: Sequence[SecurityObservation],
    action_types: Sequence[str],
) -> AnalysisSummary:
    """Assemble the report summary block."""
    summary = AnalysisSummary(
        total_transfers=len(transfers),
        unique_tokens=count_unique_tokens(transfers),
        unique_contracts=len(interactions),
        complexity_score=calculate_complexity_score(transfers, interactions, security_info, action_types),
        risk_level=calculate_risk_level(transfers, interactions, security_info, action_types),
    )
    logger.debug(f"Summary: {summary.complexity_score.value} complexity, {summary.risk_level.value} risk")
    return summary
