"""
Campaign Health Composer Test Module

Tests for campaign_health/services/health.py.

Test Coverage:
- Simple path (no contract terms, no pacing): 1.1x expected impressions
- Contract-terms path: fuzzy lookup, computed pacing, budget-aware overspend
- Precomputed and legacy pacing metrics
- No-data result, Totals exclusion and the weight invariant
- Batch scoring in first-seen order
- Injected logger
"""

import logging
from datetime import date

import pytest

from campaign_health.core.config import ScoringConfig
from campaign_health.models import BurnRateConfidence, HealthStatus
from campaign_health.services.health import (
    build_no_data_result,
    calculate_all_campaign_health,
    calculate_campaign_health,
)
from campaign_health.services.scoring import round_half_up


def _weighted(result, config: ScoringConfig) -> float:
    return round_half_up(
        result.roasScore * config.roas_weight
        + result.deliveryPacingScore * config.delivery_pacing_weight
        + result.burnRateScore * config.burn_rate_weight
        + result.ctrScore * config.ctr_weight
        + result.overspendScore * config.overspend_weight,
        1,
    )


# =============================================================================
# Test Class: TestSimpleCampaign
# =============================================================================

class TestSimpleCampaign:
    """
    Campaign "X" with no contract terms: 10,000 impressions, 100 clicks,
    $1,000 spend, $3,000 revenue over 10 days.
    """

    def test_end_to_end_example(self, simple_rows, scoring_config):
        result = calculate_campaign_health(simple_rows, 'X', config=scoring_config)

        assert result.impressions == pytest.approx(10000)
        assert result.clicks == pytest.approx(100)
        assert result.spend == pytest.approx(1000)
        assert result.revenue == pytest.approx(3000)
        assert result.ctr == pytest.approx(1.0)
        assert result.roas == pytest.approx(3.0)
        assert result.roasScore == 7.5
        assert result.ctrScore == 10.0

    def test_expected_impressions_assume_headroom(self, simple_rows, scoring_config):
        result = calculate_campaign_health(simple_rows, 'X', config=scoring_config)

        # 10,000 / 11,000 = 90.9% -> 8
        assert result.expectedImpressions == pytest.approx(11000)
        assert result.pace == pytest.approx(10000 / 11000 * 100)
        assert result.deliveryPacing == result.pace
        assert result.deliveryPacingScore == 8.0

    def test_burn_rate_against_average(self, simple_rows, scoring_config):
        result = calculate_campaign_health(simple_rows, 'X', config=scoring_config)

        assert result.requiredDailyImpressions == pytest.approx(1000)
        assert result.burnRateConfidence == BurnRateConfidence.SEVEN_DAY
        assert result.burnRate == pytest.approx(1000)
        assert result.burnRatePercentage == pytest.approx(100)
        assert result.burnRateScore == 10.0

    def test_no_budget_means_no_overspend_judgement(self, simple_rows, scoring_config):
        result = calculate_campaign_health(simple_rows, 'X', config=scoring_config)

        assert result.budget is None
        assert result.daysLeft is None
        assert result.overspendScore == 0.0
        assert result.overspend == 0.0
        assert result.spendBurnRate.dailySpendRate == pytest.approx(100)
        assert result.completionPercentage == 0.0

    def test_composite(self, simple_rows, scoring_config):
        result = calculate_campaign_health(simple_rows, 'X', config=scoring_config)

        # 7.5x0.4 + 8x0.3 + 10x0.15 + 10x0.1 + 0x0.05
        assert result.healthScore == pytest.approx(7.9)
        assert result.healthStatus == HealthStatus.HEALTHY


# =============================================================================
# Test Class: TestContractedCampaign
# =============================================================================

class TestContractedCampaign:
    """
    "2001367: HRB: Spring Tax Push" resolved against "Spring Tax Push":
    reference 03/09/2025, 9 days into a 31-day flight, 22 days left.
    """

    @pytest.fixture
    def result(self, contracted_rows, contracted_campaign_name, upload_contract_terms, scoring_config):
        return calculate_campaign_health(
            contracted_rows,
            contracted_campaign_name,
            contract_terms_data=upload_contract_terms,
            config=scoring_config,
        )

    def test_flight_progress(self, result):
        assert result.budget == 3100.0
        assert result.daysIntoFlight == 9
        assert result.daysLeft == 22
        # 9 / 31 = 29.03%
        assert result.completionPercentage == pytest.approx(29.0)

    def test_pacing_uses_goal_curve(self, result):
        # 90,000 delivered vs 90,000 expected through 03/09 = 100% -> 10
        assert result.expectedImpressions == pytest.approx(90000)
        assert result.pace == pytest.approx(100.0)
        assert result.deliveryPacingScore == 10.0

    def test_burn_rate_uses_remaining_average(self, result):
        assert result.requiredDailyImpressions == pytest.approx(10000)
        assert result.burnRateScore == 10.0

    def test_overspend_projection(self, result):
        # $900 through 03/09 + $100 x 22 = $3,100, exactly on budget -> 10 x 1.0
        assert result.spend == pytest.approx(1000)
        assert result.spendBurnRate.averageDailySpend == pytest.approx(100)
        assert result.spendBurnRate.dailySpendRate == pytest.approx(100)
        assert result.projectedSpend == pytest.approx(3100)
        assert result.overspend == 0.0
        assert result.overspendPercentage == 0.0
        assert result.overspendScore == 10.0

    def test_composite(self, result):
        # 10x0.4 + 10x0.3 + 10x0.15 + 10x0.1 + 10x0.05
        assert result.roasScore == 10.0
        assert result.ctrScore == 10.0
        assert result.healthScore == pytest.approx(10.0)
        assert result.healthStatus == HealthStatus.HEALTHY

    def test_partial_latest_day_is_not_projected(
        self, contracted_rows, contracted_campaign_name, upload_contract_terms, scoring_config
    ):
        contracted_rows[-1]['IMPRESSIONS'] = 2500
        contracted_rows[-1]['SPEND'] = 25.0
        result = calculate_campaign_health(
            contracted_rows,
            contracted_campaign_name,
            contract_terms_data=upload_contract_terms,
            config=scoring_config,
        )

        assert result.impressions == pytest.approx(92500)
        assert result.spend == pytest.approx(925)
        assert result.pace == pytest.approx(100.0)
        assert result.projectedSpend == pytest.approx(3100)
        assert result.overspendScore == 10.0

    def test_database_shape_scores_the_same(
        self, result, contracted_rows, contracted_campaign_name, database_contract_terms, scoring_config
    ):
        from_database = calculate_campaign_health(
            contracted_rows,
            contracted_campaign_name,
            contract_terms_data=database_contract_terms,
            config=scoring_config,
        )
        assert from_database == result

    def test_unusable_terms_degrade_to_simple_path(
        self, contracted_rows, contracted_campaign_name, scoring_config, caplog
    ):
        terms = [{'Campaign Name': 'Spring Tax Push', 'Budget': '3100'}]
        with caplog.at_level(logging.WARNING, logger='campaign_health'):
            result = calculate_campaign_health(
                contracted_rows,
                contracted_campaign_name,
                contract_terms_data=terms,
                config=scoring_config,
            )

        assert result.budget == 3100.0
        assert result.daysLeft is None
        assert result.overspendScore == 0.0
        assert result.expectedImpressions == pytest.approx(110000)
        assert 'Pacing metrics unavailable' in caplog.text


# =============================================================================
# Test Class: TestPacingSources
# =============================================================================

class TestPacingSources:
    """Precomputed metrics and legacy pacing rows."""

    def test_precomputed_metrics_take_precedence(
        self, simple_rows, precomputed_pacing_metrics, legacy_pacing_data, scoring_config
    ):
        result = calculate_campaign_health(
            simple_rows,
            'X',
            pacing_data=legacy_pacing_data,
            precomputed_pacing_metrics=precomputed_pacing_metrics,
            config=scoring_config,
        )

        assert result.daysIntoFlight == 10
        assert result.daysLeft == 20
        assert result.expectedImpressions == pytest.approx(10000)
        assert result.deliveryPacingScore == 10.0
        assert result.requiredDailyImpressions == pytest.approx(1000)
        assert result.completionPercentage == pytest.approx(33.3)

    def test_precomputed_metrics_as_mapping(self, simple_rows, precomputed_pacing_metrics, scoring_config):
        as_model = calculate_campaign_health(
            simple_rows, 'X', precomputed_pacing_metrics=precomputed_pacing_metrics, config=scoring_config
        )
        as_mapping = calculate_campaign_health(
            simple_rows,
            'X',
            precomputed_pacing_metrics=precomputed_pacing_metrics.model_dump(),
            config=scoring_config,
        )
        assert as_mapping == as_model

    def test_current_pacing_derives_expected(self, simple_rows, scoring_config):
        result = calculate_campaign_health(
            simple_rows,
            'X',
            precomputed_pacing_metrics={'daysIntoFlight': 10, 'daysLeft': 5, 'currentPacing': 0.85},
            config=scoring_config,
        )
        assert result.expectedImpressions == pytest.approx(10000 / 0.85)
        assert result.deliveryPacingScore == 6.0

    def test_actual_impressions_share_the_expected_window(self, simple_rows, scoring_config):
        result = calculate_campaign_health(
            simple_rows,
            'X',
            precomputed_pacing_metrics={
                'daysIntoFlight': 9,
                'daysLeft': 5,
                'expectedImpressions': 9000,
                'actualImpressions': 9000,
            },
            config=scoring_config,
        )
        assert result.impressions == pytest.approx(10000)
        assert result.pace == pytest.approx(100.0)
        assert result.deliveryPacingScore == 10.0

    def test_reference_date_bounds_spend_projection(self, simple_rows, scoring_config):
        # $900 through 03/09 + $100 x 5 days left
        result = calculate_campaign_health(
            simple_rows,
            'X',
            precomputed_pacing_metrics={
                'daysIntoFlight': 9,
                'daysLeft': 5,
                'referenceDate': '2025-03-09',
            },
            config=scoring_config,
        )
        assert result.spendBurnRate.averageDailySpend == pytest.approx(100)
        assert result.projectedSpend == pytest.approx(1400)

    @pytest.mark.parametrize(
        'malformed',
        [
            {'daysIntoFlight': 'n/a', 'daysLeft': 5},
            {'daysIntoFlight': -1, 'daysLeft': 5},
            {'daysIntoFlight': None, 'daysLeft': 5},
        ],
    )
    def test_malformed_metrics_fall_back_to_legacy_rows(
        self, simple_rows, legacy_pacing_data, scoring_config, caplog, malformed
    ):
        with caplog.at_level(logging.WARNING, logger='campaign_health'):
            result = calculate_campaign_health(
                simple_rows,
                'X',
                pacing_data=legacy_pacing_data,
                precomputed_pacing_metrics=malformed,
                config=scoring_config,
            )

        assert result.daysIntoFlight == 5
        assert result.daysLeft == 0
        assert 'Ignoring malformed pacing metrics' in caplog.text

    def test_malformed_metrics_without_fallback(self, simple_rows, scoring_config):
        result = calculate_campaign_health(
            simple_rows,
            'X',
            precomputed_pacing_metrics={'daysIntoFlight': 'n/a'},
            config=scoring_config,
        )
        assert result.daysLeft is None
        assert result.healthScore == pytest.approx(7.9)

    @pytest.mark.properties
    def test_legacy_rows_complete_flight(self, simple_rows, legacy_pacing_data, scoring_config):
        result = calculate_campaign_health(
            simple_rows, 'X', pacing_data=legacy_pacing_data, config=scoring_config
        )

        assert result.daysIntoFlight == 5
        assert result.daysLeft == 0
        assert result.completionPercentage == 100.0
        # No contract terms, so the headroom assumption still applies
        assert result.expectedImpressions == pytest.approx(11000)


# =============================================================================
# Test Class: TestInvariants
# =============================================================================

@pytest.mark.properties
class TestInvariants:
    """Invariants that hold for every input."""

    def test_no_rows_is_no_data(self, simple_rows, upload_contract_terms, legacy_pacing_data, scoring_config):
        result = calculate_campaign_health(
            simple_rows,
            'Missing Campaign',
            pacing_data=legacy_pacing_data,
            contract_terms_data=upload_contract_terms,
            config=scoring_config,
        )

        assert result == build_no_data_result('Missing Campaign')
        assert result.healthScore == 0.0
        assert result.roasScore == 0.0
        assert result.burnRateConfidence == BurnRateConfidence.NO_DATA
        assert result.healthStatus == HealthStatus.NO_DATA

    def test_empty_input_is_no_data(self, scoring_config):
        assert calculate_campaign_health(None, 'X', config=scoring_config).healthStatus == HealthStatus.NO_DATA
        assert calculate_campaign_health([], 'X', config=scoring_config).healthScore == 0.0

    def test_totals_row_does_not_change_result(self, simple_rows, mixed_rows, scoring_config):
        assert calculate_campaign_health(mixed_rows, 'X', config=scoring_config) == calculate_campaign_health(
            simple_rows, 'X', config=scoring_config
        )

    def test_health_score_is_weighted_sum(
        self, simple_rows, contracted_rows, contracted_campaign_name, upload_contract_terms, scoring_config
    ):
        results = [
            calculate_campaign_health(simple_rows, 'X', config=scoring_config),
            calculate_campaign_health(
                contracted_rows,
                contracted_campaign_name,
                contract_terms_data=upload_contract_terms,
                config=scoring_config,
            ),
        ]
        for result in results:
            assert result.healthScore == pytest.approx(_weighted(result, scoring_config))

    def test_zero_impressions_and_spend(self, row_builder, scoring_config):
        rows = row_builder('X', date(2025, 3, 1), 3, impressions=0, clicks=0, spend=0, revenue=0)
        result = calculate_campaign_health(rows, 'X', config=scoring_config)

        assert result.ctr == 0.0
        assert result.roas == 0.0
        assert result.deliveryPacingScore == 0.0
        assert result.healthScore == 0.0
        assert result.healthStatus == HealthStatus.CRITICAL


# =============================================================================
# Test Class: TestBatch
# =============================================================================

class TestBatch:
    """Tests for calculate_all_campaign_health."""

    def test_scores_every_campaign_in_order(
        self, mixed_rows, contracted_campaign_name, database_contract_terms, scoring_config
    ):
        results = calculate_all_campaign_health(
            mixed_rows, contract_terms_data=database_contract_terms, config=scoring_config
        )

        assert [result.campaignName for result in results] == ['X', contracted_campaign_name]
        assert results[0].healthScore == pytest.approx(7.9)
        assert results[1].healthScore == pytest.approx(10.0)

    def test_per_campaign_pacing_metrics(self, simple_rows, precomputed_pacing_metrics, scoring_config):
        results = calculate_all_campaign_health(
            simple_rows,
            pacing_metrics_by_campaign={'X': precomputed_pacing_metrics},
            config=scoring_config,
        )
        assert results[0].daysLeft == 20

    def test_empty_batch(self, scoring_config):
        assert calculate_all_campaign_health([], config=scoring_config) == []


# =============================================================================
# Test Class: TestLogging
# =============================================================================

class TestLogging:
    """Diagnostics go to the injected logger."""

    def test_injected_logger_receives_diagnostics(self, simple_rows, scoring_config, caplog):
        log = logging.getLogger('tests.campaign_health.injected')
        with caplog.at_level(logging.DEBUG, logger='tests.campaign_health.injected'):
            calculate_campaign_health(simple_rows, 'X', config=scoring_config, log=log)

        assert any(record.name == 'tests.campaign_health.injected' for record in caplog.records)
        assert "Health for 'X'" in caplog.text
