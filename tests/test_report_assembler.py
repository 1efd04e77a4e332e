"""
Unit tests for report assembly
Tests: round results, advancement lists, final rankings, bronze policies, regeneration
"""

import pytest

from reports.assembler import build_report, build_report_from_snapshot, find_competitor_reports
from tournament.config import BronzePolicy, ProgressionConfig
from tournament.errors import DisciplineMismatchError
from tournament.models import CategorySnapshot
from tournament.rounds import KataRound, KumiteLevel


def round_named(report, name):
    return next(r for r in report.rounds if r.round_name == name)


class TestKataReport:
    """Kata category reports"""

    def test_first_round(self, kata_first_round):
        report = build_report_from_snapshot(kata_first_round)
        assert report.category_id == kata_first_round.category.category_id
        assert len(report.rounds) == 1

        first = report.rounds[0]
        assert first.round_name == KataRound.FIRST.value
        assert first.closed is True
        assert [e.entity_id for e in first.results][:3] == ["P01", "P02", "P03"]
        assert len(first.advanced) == 8
        assert report.final_rankings is None

    def test_scores_recomputed_from_judges(self, kata_category, make_performance):
        snapshot = CategorySnapshot(
            category=kata_category,
            performances=[
                make_performance("P1", 1, scores=[8.5, 7.0, 9.0, 7.5, 8.0]),
                make_performance("P2", 2, scores=[8.0, 8.0, 8.0, 8.0, 12.0]),
                make_performance("P3", 3, scores=[8.0, 8.0]),
            ],
        )
        first = build_report_from_snapshot(snapshot).rounds[0]

        assert [e.entity_id for e in first.results] == ["P1", "P3"]
        assert first.results[0].score == 24.0
        assert first.results[1].score is None
        assert [e.entity_id for e in first.excluded] == ["P2"]
        assert first.closed is False
        assert first.advanced == []

    def test_shared_bronze_final_rankings(self, kata_category, make_performance):
        """Explicit places {A:1, B:2, C:3, D:3} give four final rankings"""
        snapshot = CategorySnapshot(
            category=kata_category,
            performances=[
                make_performance("A", 1, round_=KataRound.THIRD, final_score=26.0, place=1, competitor_id="A"),
                make_performance("B", 2, round_=KataRound.THIRD, final_score=25.0, place=2, competitor_id="B"),
                make_performance("C", 3, round_=KataRound.THIRD, final_score=24.0, place=3, competitor_id="C"),
                make_performance("D", 4, round_=KataRound.THIRD, final_score=23.0, place=3, competitor_id="D"),
            ],
        )
        report = build_report_from_snapshot(snapshot)

        final_four = round_named(report, KataRound.THIRD.value)
        assert [e.place for e in final_four.results] == [1, 2, 3, 3]

        rankings = report.final_rankings
        assert len(rankings) == 4
        assert [r.entity_ref for r in rankings[:2]] == ["A", "B"]
        assert {r.entity_ref for r in rankings[2:]} == {"C", "D"}
        assert [r.place for r in rankings] == [1, 2, 3, 3]
        assert [r.medal for r in rankings] == ["Gold", "Silver", "Bronze", "Bronze"]

    def test_derived_places(self, kata_category, make_performance):
        """Without explicit places the Final 4 gets 1, 2, 3, 3 by score"""
        snapshot = CategorySnapshot(
            category=kata_category,
            performances=[
                make_performance(f"F{i}", i, round_=KataRound.THIRD, final_score=float(20 + i), competitor_id=f"F{i}")
                for i in range(1, 5)
            ],
        )
        rankings = build_report_from_snapshot(snapshot).final_rankings
        assert [(r.entity_ref, r.place) for r in rankings] == [("F4", 1), ("F3", 2), ("F2", 3), ("F1", 3)]

    def test_recorded_place_not_overridden_by_scores(self, kata_category, make_performance):
        """One recorded place: the others stay unplaced, no second Gold"""
        snapshot = CategorySnapshot(
            category=kata_category,
            performances=[
                make_performance("A", 1, round_=KataRound.THIRD, final_score=25.0, competitor_id="A"),
                make_performance("B", 2, round_=KataRound.THIRD, final_score=24.0, competitor_id="B"),
                make_performance("C", 3, round_=KataRound.THIRD, final_score=23.0, competitor_id="C"),
                make_performance("D", 4, round_=KataRound.THIRD, final_score=22.0, place=1, competitor_id="D"),
            ],
        )
        report = build_report_from_snapshot(snapshot)

        final_four = round_named(report, KataRound.THIRD.value)
        assert [e.entity_id for e in final_four.results] == ["D", "A", "B", "C"]
        assert [e.place for e in final_four.results] == [1, None, None, None]
        assert [(r.entity_ref, r.place) for r in report.final_rankings] == [("D", 1)]

    def test_no_final_rankings_while_pending(self, kata_category, make_performance):
        snapshot = CategorySnapshot(
            category=kata_category,
            performances=[
                make_performance("A", 1, round_=KataRound.THIRD, final_score=26.0),
                make_performance("B", 2, round_=KataRound.THIRD),
            ],
        )
        assert build_report_from_snapshot(snapshot).final_rankings is None


class TestKumiteReport:
    """Kumite category reports"""

    def test_preliminary_unchanged_after_next_level_drawn(self, kumite_category, make_match):
        """Drawing the Quarterfinal does not change the Preliminary section"""
        preliminary = [
            make_match("PR1", KumiteLevel.PRELIMINARY, 1, ["alpha", "bravo"], winner="alpha"),
            make_match("PR2", KumiteLevel.PRELIMINARY, 2, ["charlie", "delta"], winner="delta"),
        ]
        before = build_report_from_snapshot(CategorySnapshot(category=kumite_category, matches=preliminary))
        after = build_report_from_snapshot(CategorySnapshot(
            category=kumite_category,
            matches=preliminary + [make_match("QF1", KumiteLevel.QUARTERFINAL, 1, ["alpha", "delta"])],
        ))

        assert round_named(before, "Preliminary") == round_named(after, "Preliminary")
        assert [a.competitor_id for a in round_named(after, "Preliminary").advanced] == ["alpha", "delta"]
        assert round_named(after, "Quarterfinal").closed is False

    def test_shared_bronze(self, kumite_finished):
        """No Bronze matches: both Semifinal losers place 3"""
        rankings = build_report_from_snapshot(kumite_finished).final_rankings
        assert [(r.entity_ref, r.place) for r in rankings] == [
            ("charlie", 1),
            ("alpha", 2),
            ("delta", 3),
            ("bravo", 3),
        ]

    def test_bronze_match_policy(self, kumite_finished, make_match):
        snapshot = CategorySnapshot(
            category=kumite_finished.category,
            matches=list(kumite_finished.matches) + [
                make_match("B1", KumiteLevel.BRONZE, 1, ["delta", "bravo"], winner="bravo"),
            ],
        )
        rankings = build_report_from_snapshot(snapshot).final_rankings
        assert [(r.entity_ref, r.place) for r in rankings] == [
            ("charlie", 1),
            ("alpha", 2),
            ("bravo", 3),
        ]

    def test_forced_shared_policy(self, kumite_finished, make_match):
        snapshot = CategorySnapshot(
            category=kumite_finished.category,
            matches=list(kumite_finished.matches) + [
                make_match("B1", KumiteLevel.BRONZE, 1, ["delta", "bravo"], winner="bravo"),
            ],
        )
        config = ProgressionConfig(bronze_policy=BronzePolicy.SHARED)
        rankings = build_report_from_snapshot(snapshot, config).final_rankings
        assert [r.place for r in rankings] == [1, 2, 3, 3]

    def test_bronze_listed_before_final(self, kumite_finished, make_match):
        snapshot = CategorySnapshot(
            category=kumite_finished.category,
            matches=list(kumite_finished.matches) + [
                make_match("B1", KumiteLevel.BRONZE, 1, ["delta", "bravo"], winner="bravo"),
            ],
        )
        names = [r.round_name for r in build_report_from_snapshot(snapshot).rounds]
        assert names == ["Semifinal", "Bronze", "Final"]

    def test_pending_bronze_holds_rankings(self, kumite_finished, make_match):
        """Bronze match drawn but not fought: the report is not final yet"""
        snapshot = CategorySnapshot(
            category=kumite_finished.category,
            matches=list(kumite_finished.matches) + [
                make_match("B1", KumiteLevel.BRONZE, 1, ["delta", "bravo"]),
            ],
        )
        config = ProgressionConfig(bronze_policy=BronzePolicy.AUTO)
        report = build_report_from_snapshot(snapshot, config)
        assert round_named(report, "Final").closed is True
        assert report.final_rankings is None
        assert not report.is_final

    def test_no_rankings_before_final(self, kumite_semifinals_done):
        assert build_report_from_snapshot(kumite_semifinals_done).final_rankings is None

    def test_match_entry(self, kumite_finished):
        final = round_named(build_report_from_snapshot(kumite_finished), "Final")
        entry = final.results[0]
        assert entry.competitor_ids == ["alpha", "charlie"]
        assert entry.winner_id == "charlie"
        assert entry.score is None


class TestRegeneration:
    """Idempotent, full-replace regeneration"""

    def test_identical_json(self, kumite_finished):
        first = build_report_from_snapshot(kumite_finished).to_json()
        second = build_report_from_snapshot(kumite_finished).to_json()
        assert first == second

    def test_reflects_full_round_set(self, kumite_semifinals_done, kumite_finished):
        """A regenerated report is built from scratch, not merged"""
        earlier = build_report_from_snapshot(kumite_finished)
        later = build_report_from_snapshot(kumite_semifinals_done)
        assert [r.round_name for r in earlier.rounds] == ["Semifinal", "Final"]
        assert [r.round_name for r in later.rounds] == ["Semifinal"]
        assert later.final_rankings is None

    def test_discipline_mismatch(self, kata_category, make_match):
        with pytest.raises(DisciplineMismatchError):
            build_report(kata_category, {KumiteLevel.FINAL: []})


class TestCompetitorLookup:

    def test_find_reports(self, kata_first_round, kumite_finished):
        reports = [build_report_from_snapshot(kata_first_round), build_report_from_snapshot(kumite_finished)]
        assert find_competitor_reports(reports, "charlie") == [reports[1]]
        assert find_competitor_reports(reports, "C-P01") == [reports[0]]
        assert find_competitor_reports(reports, "nobody") == []
