"""
Complexity and risk heuristic tests.

File: tests/test_scoring.py
"""

from factories import NFT_ADDRESS, RECIPIENT, SENDER, TOKEN_ADDRESS

from txinsight.engine.scoring import (
    build_summary,
    calculate_complexity_points,
    calculate_complexity_score,
    calculate_risk_factors,
    calculate_risk_level,
    count_unique_tokens,
)
from txinsight.shared.schemas import (
    ComplexityLevel,
    ERC20Transfer,
    ERC721Transfer,
    NativeTransfer,
    RiskLevel,
    SecurityObservation,
    TokenMetadata,
)


def erc20_transfer(token=TOKEN_ADDRESS):
    return ERC20Transfer(
        token=TokenMetadata(address=token, token_type='ERC20'),
        from_address=SENDER,
        to_address=RECIPIENT,
        value='1.0',
    )


def native_transfer():
    return NativeTransfer(
        token=TokenMetadata(token_type='Native', symbol='ETH', decimals=18),
        from_address=SENDER,
        to_address=RECIPIENT,
        value='0.5',
    )


def warning(address=RECIPIENT):
    return SecurityObservation(
        observation_type='Warning',
        message=f"Address {address} is not a contract",
        address=address,
    )


INTERACTIONS = ['0x' + str(i) * 40 for i in range(1, 5)]


class TestComplexityScore:
    """Test suite for complexity scoring."""

    def test_single_transfer_single_label_is_simple(self):
        args = ([native_transfer()], [], [], ['Native Transfer'])

        assert calculate_complexity_points(*args) == 2
        assert calculate_complexity_score(*args) is ComplexityLevel.SIMPLE

    def test_two_labels_add_bonus(self):
        args = ([native_transfer()], [], [], ['Native Transfer', 'Contract Interaction'])

        assert calculate_complexity_points(*args) == 7
        assert calculate_complexity_score(*args) == 'Moderate'

    def test_repeated_label_counts_once(self):
        args = ([erc20_transfer(), erc20_transfer()], [], [], ['Token Transfer', 'Token Transfer'])

        assert calculate_complexity_points(*args) == 4

    def test_weights(self):
        transfers = [erc20_transfer()] * 3
        interactions = INTERACTIONS[:2]
        observations = [warning()]

        assert calculate_complexity_points(transfers, interactions, observations, ['Token Transfer']) == 14

    def test_category_boundaries(self):
        assert calculate_complexity_score([erc20_transfer()] * 2, [INTERACTIONS[0]], [], []) == 'Moderate'
        assert calculate_complexity_score([erc20_transfer()] * 6, INTERACTIONS, [], []) == 'Complex'
        assert calculate_complexity_score([erc20_transfer()] * 10, INTERACTIONS, [], ['Swap', 'Sync']) is ComplexityLevel.VERY_COMPLEX


class TestRiskLevel:
    """Test suite for risk scoring."""

    def test_no_factors_is_low(self):
        assert calculate_risk_level([native_transfer()], [], [], ['Native Transfer']) is RiskLevel.LOW

    def test_many_interactions_with_swap_is_medium(self):
        args = ([], INTERACTIONS, [], ['Swap'])

        assert calculate_risk_factors(*args) == 2
        assert calculate_risk_level(*args) is RiskLevel.MEDIUM

    def test_warning_pushes_to_high(self):
        args = ([], INTERACTIONS, [warning()], ['Swap'])

        assert calculate_risk_factors(*args) == 4
        assert calculate_risk_level(*args) is RiskLevel.HIGH

    def test_many_transfers_and_labels(self):
        transfers = [erc20_transfer()] * 6

        assert calculate_risk_factors(transfers, [], [], ['Token Transfer', 'Swap']) == 3


class TestSummary:
    """Test suite for summary assembly."""

    def test_unique_tokens_counts_native_once(self):
        transfers = [
            native_transfer(),
            erc20_transfer(),
            erc20_transfer(TOKEN_ADDRESS.lower()),
            erc20_transfer(NFT_ADDRESS),
        ]

        assert count_unique_tokens(transfers) == 3

    def test_build_summary(self):
        transfers = [native_transfer(), erc20_transfer()]
        summary = build_summary(transfers, [TOKEN_ADDRESS], [], ['Native Transfer', 'Token Transfer'])

        assert summary.total_transfers == 2
        assert summary.unique_tokens == 2
        assert summary.unique_contracts == 1
        # 2*2 + 3*1 + 5
        assert summary.complexity_score is ComplexityLevel.MODERATE
        assert summary.risk_level is RiskLevel.MEDIUM
        data = summary.to_json_dict()
        assert data['complexityScore'] == 'Moderate'
        assert data['riskLevel'] == 'Medium'

    def test_erc721_transfer_counts_as_token(self):
        transfer = ERC721Transfer(
            token=TokenMetadata(address=NFT_ADDRESS, token_type='ERC721'),
            from_address=SENDER,
            to_address=RECIPIENT,
            token_id='1',
        )

        assert count_unique_tokens([transfer]) == 1
