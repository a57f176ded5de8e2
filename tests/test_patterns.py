"""Tests for gap and shift classification."""

import random
from decimal import Decimal

import pytest

from transitoria.aggregator import MonthlyAggregator
from transitoria.models import Group
from transitoria.normalizer import KeyNormalizer
from transitoria.patterns import (
    PatternClassifier,
    RecurringPatternAnalyzer,
    analyze,
    fiscal_years,
    missing_items,
    sort_groups,
)


def group_from(amounts: dict[int, str], key: str = "Vastgoed BV | huur kantoor") -> Group:
    """Build a group directly from month index -> amount."""
    monthly_amounts = [Decimal("0")] * 12
    monthly_counts = [0] * 12
    for index, amount in amounts.items():
        monthly_amounts[index] = Decimal(amount)
        monthly_counts[index] = 1
    counterparty, _, name = key.partition(" | ")
    return Group(
        key=key,
        counterparty=counterparty,
        name=name,
        monthly_amounts=tuple(monthly_amounts),
        monthly_counts=tuple(monthly_counts),
        total=sum(monthly_amounts, Decimal("0")),
    )


@pytest.fixture
def classifier():
    return PatternClassifier(shift_threshold=1.8, min_active_months=3)


@pytest.fixture
def analyzer(nl_vocab, classifier):
    return RecurringPatternAnalyzer(
        aggregator=MonthlyAggregator(KeyNormalizer(vocabulary=nl_vocab)),
        classifier=classifier,
    )


class TestClassify:
    """Tests for PatternClassifier.classify()."""

    def test_missing_month_with_normal_neighbors_is_gap(self, classifier):
        group = group_from({i: "1000" for i in range(12) if i != 3})

        result = classifier.classify(group)

        assert result.gaps == (3,)
        assert result.shifts == ()

    def test_missing_month_next_to_large_amount_is_shift(self, classifier):
        amounts = {i: "1000" for i in range(12) if i != 3}
        group = group_from(amounts)
        # Month 4 at 2.5x the group average
        boosted = dict(amounts)
        boosted[4] = str(group.average_amount * Decimal("2.5"))

        result = classifier.classify(group_from(boosted))

        assert result.shifts == (3,)
        assert result.gaps == ()

    def test_double_payment_in_following_month(self, classifier):
        # Feb rent booked together with March: avg = 12000 / 11
        amounts = {i: "1000" for i in range(12) if i != 1}
        amounts[2] = "2000"

        result = classifier.classify(group_from(amounts))

        # 2000 > 1.8 * 1090.9 = 1963.6
        assert result.shifts == (1,)
        assert result.gaps == ()

    def test_previous_neighbor_also_counts(self, classifier):
        amounts = {0: "1000", 1: "5000", 3: "1000", 4: "1000"}

        result = classifier.classify(group_from(amounts))

        assert result.shifts == (2,)

    def test_two_active_months_are_not_analyzed(self, classifier):
        result = classifier.classify(group_from({0: "100", 6: "100"}))

        assert result.gaps == ()
        assert result.shifts == ()

    def test_months_outside_active_range_never_flagged(self, classifier):
        amounts = {i: "500" for i in range(2, 10) if i not in (5, 6)}

        result = classifier.classify(group_from(amounts))

        assert result.gaps == (5, 6)
        for month in (0, 1, 10, 11):
            assert month not in result.gaps
            assert month not in result.shifts

    def test_negative_amounts_use_magnitudes(self, classifier):
        amounts = {i: "-1000" for i in range(12) if i != 6}
        amounts[7] = "-5000"

        result = classifier.classify(group_from(amounts))

        assert result.shifts == (6,)

    def test_edges_treat_missing_neighbor_as_zero(self, classifier):
        # Gap in December can only look back
        amounts = {9: "100", 10: "100", 11: "100"}
        result = classifier.classify(group_from(amounts))
        assert result.gaps == ()

        amounts = {0: "100", 2: "100", 3: "100", 5: "100"}
        result = classifier.classify(group_from(amounts))
        assert result.gaps == (1, 4)

    def test_threshold_is_configurable(self):
        amounts = {i: "1000" for i in range(12) if i != 1}
        amounts[2] = "1500"
        group = group_from(amounts)

        assert PatternClassifier(shift_threshold=1.8).classify(group).gaps == (1,)
        assert PatternClassifier(shift_threshold=1.2).classify(group).shifts == (1,)

    def test_min_active_months_is_configurable(self):
        group = group_from({0: "100", 2: "100"})

        assert PatternClassifier(min_active_months=3).classify(group).gaps == ()
        assert PatternClassifier(min_active_months=2).classify(group).gaps == (1,)

    def test_single_active_month_has_nothing_to_flag(self):
        group = group_from({5: "1000"})

        result = PatternClassifier(min_active_months=1).classify(group)

        assert group.active_range == (5, 5)
        assert result.gaps == ()
        assert result.shifts == ()

    def test_defaults_come_from_settings(self, monkeypatch):
        monkeypatch.setenv("SHIFT_THRESHOLD", "2.5")
        monkeypatch.setenv("MIN_ACTIVE_MONTHS", "4")

        classifier = PatternClassifier()

        assert classifier.shift_threshold == Decimal("2.5")
        assert classifier.min_active_months == 4

    def test_gaps_and_shifts_partition_empty_months(self, classifier):
        rng = random.Random(11)
        for _ in range(200):
            amounts = {
                i: str(rng.choice([-3, 1, 2, 5]) * rng.randint(1, 900))
                for i in range(12)
                if rng.random() < 0.6
            }
            result = classifier.classify(group_from(amounts))
            if result.active_months < 3:
                assert result.gaps == () and result.shifts == ()
                continue

            first, last = result.active_range
            empty = {i for i in range(first, last + 1) if result.monthly_counts[i] == 0}
            assert set(result.gaps) | set(result.shifts) == empty
            assert not set(result.gaps) & set(result.shifts)


class TestSorting:
    """Report ordering."""

    def test_most_gaps_first_then_key(self):
        groups = [
            Group(key="b", counterparty="b", name="", gaps=(1,)),
            Group(key="a", counterparty="a", name="", gaps=()),
            Group(key="c", counterparty="c", name="", gaps=(1, 2)),
            Group(key="a2", counterparty="a2", name="", gaps=(5,)),
        ]

        assert [g.key for g in sort_groups(groups)] == ["c", "a2", "b", "a"]

    def test_missing_items_keeps_order_and_limit(self):
        groups = sort_groups(
            [
                Group(key="x", counterparty="x", name="", gaps=(1,)),
                Group(key="y", counterparty="y", name="", gaps=()),
                Group(key="z", counterparty="z", name="", gaps=(1, 2)),
            ]
        )

        assert [g.key for g in missing_items(groups)] == ["z", "x"]
        assert [g.key for g in missing_items(groups, limit=1)] == ["z"]


class TestAnalyzer:
    """End-to-end analysis over ledger entries."""

    def test_rent_gap_scenario(self, analyzer, rent_ledger):
        groups = analyzer.analyze(rent_ledger)

        assert len(groups) == 1
        assert groups[0].key == "Vastgoed BV | huur kantoor"
        assert groups[0].gaps == (3,)

    def test_mixed_ledger_order(self, analyzer, entry_factory):
        entries = [
            *(entry_factory(m, counterparty="Vastgoed BV") for m in (1, 2, 3, 5, 6, 8)),
            *(
                entry_factory(m, "80", counterparty="KPN", description="Telefoon abonnement")
                for m in range(1, 13)
            ),
            *(
                entry_factory(m, "45000", counterparty="Salesforce", description="Licentie 2024")
                for m in (1, 7)
            ),
        ]

        groups = analyzer.analyze(entries)

        assert [g.key for g in groups] == [
            "Vastgoed BV | huur kantoor",
            "KPN | telefoon abonnement",
            "Salesforce | licentie",
        ]
        assert groups[0].gaps == (3, 6)
        assert groups[1].gaps == ()
        assert groups[2].gaps == () and groups[2].shifts == ()

    def test_output_is_deterministic(self, analyzer, entry_factory):
        rng = random.Random(5)
        entries = [
            entry_factory(
                rng.randint(1, 12),
                rng.randint(1, 2000),
                counterparty=rng.choice(["A", "B", "C", "D"]),
                description=rng.choice(["Huur", "Energie", "Schoonmaak"]),
            )
            for _ in range(150)
        ]
        shuffled = list(entries)
        rng.shuffle(shuffled)

        assert analyzer.analyze(entries) == analyzer.analyze(entries)
        assert [g.key for g in analyzer.analyze(shuffled)] == [
            g.key for g in analyzer.analyze(entries)
        ]

    def test_fiscal_year_scopes_input(self, analyzer, entry_factory):
        entries = [entry_factory(m, year=2024) for m in (1, 2, 3, 5)]
        entries += [entry_factory(4, year=2023)]

        assert analyzer.analyze(entries)[0].gaps == ()
        assert analyzer.analyze(entries, fiscal_year=2024)[0].gaps == (3,)

    def test_scope_then_analyze_matches_analyze(self, analyzer, entry_factory):
        entries = [entry_factory(m, year=2024) for m in (1, 2, 3, 5)]
        entries += [entry_factory(4, year=2023)]

        scoped = analyzer.scope(entries, fiscal_year=2024)

        assert len(scoped) == 4
        assert analyzer.analyze_scoped(scoped) == analyzer.analyze(entries, fiscal_year=2024)

    def test_scope_without_year_keeps_everything(self, analyzer, entry_factory):
        entries = [entry_factory(1, year=2023), entry_factory(1, year=2024)]

        assert analyzer.scope(entries) == entries

    def test_empty_ledger(self, analyzer):
        assert analyzer.analyze([]) == []

    def test_module_level_analyze(self, rent_ledger):
        assert analyze(rent_ledger)[0].gaps == (3,)


def test_fiscal_years(entry_factory):
    entries = [entry_factory(1, year=2024), entry_factory(2, year=2023), entry_factory(3)]
    assert fiscal_years(entries) == [2023, 2024]
