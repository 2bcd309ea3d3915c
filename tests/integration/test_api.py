import math

import pytest
from scipy import stats

from seqks.api import (
    KSMonitorConfig,
    from_config,
    goodness_of_fit_monitoring,
    two_sample_monitoring,
)
from seqks.stats.methods.one_sided_ks import find_min_count, family_log_eps
from seqks.stats.schemes.ks_streams import (
    FixedDistributionKSTemplate,
    TwoSampleKSTemplate,
)


class TestTwoSampleMonitoring:
    def test_defaults(self):
        monitor = two_sample_monitoring("exp")
        assert isinstance(monitor, TwoSampleKSTemplate)
        assert monitor.comparison == "equal"
        assert monitor.family == "pair_eq"
        assert monitor.min_count == find_min_count(
            family_log_eps(math.log(0.05), "pair_eq")
        )

    def test_one_sided(self):
        monitor = two_sample_monitoring("exp", sidedness="one_sided")
        assert monitor.comparison == "less_equal"
        assert monitor.family == "pair_le"

    def test_warmup_sets_min_count(self):
        assert two_sample_monitoring("exp", warmup=100).min_count == 100

    def test_effect_size_adds_recommender(self, ledger):
        monitor = two_sample_monitoring("exp", effect_size=0.1)
        monitor.setup(ledger)
        assert "recommender" in monitor.components


class TestGoodnessOfFitMonitoring:
    def test_frozen_distribution(self):
        monitor = goodness_of_fit_monitoring("gof", reference=stats.norm())
        assert isinstance(monitor, FixedDistributionKSTemplate)
        assert monitor.family == "fixed_eq"

    def test_one_sided_callable(self):
        monitor = goodness_of_fit_monitoring(
            "gof", reference=stats.expon().cdf, sidedness="one_sided", alpha=0.01
        )
        assert monitor.family == "fixed_le"
        assert monitor.alpha == 0.01


class TestKSMonitorConfig:
    def test_two_sample_config(self):
        template = from_config(KSMonitorConfig("drift", comparison="less_equal"))
        assert isinstance(template, TwoSampleKSTemplate)
        assert template.family == "pair_le"
        assert template.experiment_id == "drift"

    def test_reference_config(self):
        config = KSMonitorConfig("gof", reference=stats.uniform(), min_count=40)
        template = from_config(config)
        assert isinstance(template, FixedDistributionKSTemplate)
        assert template.min_count == 40

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"alpha": 0.0}, "Alpha must be in"),
            ({"alpha": 1.0}, "Alpha must be in"),
            ({"comparison": "greater"}, "Comparison must be"),
            ({"min_count": 2}, "min_count must be at least 3"),
            ({"effect_size": 0.0}, "effect_size must be in"),
            ({"effect_size": 1.5}, "effect_size must be in"),
            ({"reference": "uniform"}, "reference must be"),
        ],
    )
    def test_validation(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            KSMonitorConfig("bad", **kwargs)

    def test_revalidated_before_building(self):
        config = KSMonitorConfig("drift")
        config.alpha = 2.0
        with pytest.raises(ValueError, match="Alpha must be in"):
            from_config(config)
