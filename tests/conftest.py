"""
Pytest configuration and fixtures for the tournament progression engine tests
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tournament.config import BronzePolicy, ProgressionConfig
from tournament.models import (
    Category,
    CategorySnapshot,
    CategoryType,
    EntityStatus,
    JudgeScore,
    Match,
    MatchParticipant,
    ParticipantResult,
    Performance,
)
from tournament.rounds import KataRound, KumiteLevel


KATA_CATEGORY_ID = "KATA-M-U18"
KUMITE_CATEGORY_ID = "KUMITE-M-67"


@pytest.fixture(scope="session")
def kata_category():
    """Individual Kata category"""
    return Category(
        category_id=KATA_CATEGORY_ID,
        category_name="Male Kata U18",
        category_type=CategoryType.KATA,
        tournament_name="Spring Open",
    )


@pytest.fixture(scope="session")
def kumite_category():
    """Individual Kumite category"""
    return Category(
        category_id=KUMITE_CATEGORY_ID,
        category_name="Male Kumite -67kg",
        category_type=CategoryType.KUMITE,
        tournament_name="Spring Open",
    )


@pytest.fixture
def make_performance():
    """Performance factory: judge scores or a recorded final score"""
    def _make(
        performance_id,
        order,
        round_=KataRound.FIRST,
        scores=None,
        final_score=None,
        place=None,
        competitor_id=None,
        category_id=KATA_CATEGORY_ID,
    ):
        judge_scores = [JudgeScore(judge_id=f"J{i + 1}", score=s) for i, s in enumerate(scores or [])]
        finished = final_score is not None or len(judge_scores) >= 5
        return Performance(
            performance_id=performance_id,
            category_id=category_id,
            competitor_id=competitor_id or f"C-{performance_id}",
            competitor_name=f"Competitor {performance_id}",
            round=round_,
            performance_order=order,
            status=EntityStatus.COMPLETED if finished else EntityStatus.SCHEDULED,
            judge_scores=judge_scores,
            final_score=final_score,
            place=place,
        )
    return _make


@pytest.fixture
def make_match():
    """
    Match factory.

    `competitors` is a list of competitor ids (one id = bye); `winner` marks a
    completed match and sets the participant results.
    """
    def _make(
        match_id,
        level,
        order,
        competitors,
        winner=None,
        status=None,
        winner_id=None,
        category_id=KUMITE_CATEGORY_ID,
    ):
        participants = []
        for i, competitor_id in enumerate(competitors):
            result = None
            if winner is not None:
                result = ParticipantResult.WIN if competitor_id == winner else ParticipantResult.LOSS
            participants.append(MatchParticipant(
                participant_id=f"{match_id}-P{i + 1}",
                competitor_id=competitor_id,
                competitor_name=competitor_id.title(),
                result=result,
            ))
        if status is None:
            status = EntityStatus.COMPLETED if winner is not None else EntityStatus.SCHEDULED
        return Match(
            match_id=match_id,
            category_id=category_id,
            level=level,
            match_order=order,
            participants=participants,
            status=status,
            winner_id=winner_id,
        )
    return _make


@pytest.fixture
def progression_settings():
    """Default progression settings, independent of the environment"""
    return ProgressionConfig(final_eight_size=8, final_four_size=4, bronze_policy=BronzePolicy.AUTO)


@pytest.fixture
def kata_first_round(kata_category, make_performance):
    """Ten finalized First Round performances, P01 best ... P10 worst"""
    performances = [
        make_performance(f"P{i:02d}", i, final_score=float(30 - i)) for i in range(1, 11)
    ]
    return CategorySnapshot(category=kata_category, performances=performances)


@pytest.fixture
def kumite_semifinals_done(kumite_category, make_match):
    """Two completed Semifinals, Final not drawn yet"""
    return CategorySnapshot(
        category=kumite_category,
        matches=[
            make_match("SF1", KumiteLevel.SEMIFINAL, 1, ["alpha", "delta"], winner="alpha"),
            make_match("SF2", KumiteLevel.SEMIFINAL, 2, ["bravo", "charlie"], winner="charlie"),
        ],
    )


@pytest.fixture
def kumite_finished(kumite_category, make_match):
    """Semifinals and Final completed, no Bronze matches"""
    return CategorySnapshot(
        category=kumite_category,
        matches=[
            make_match("SF1", KumiteLevel.SEMIFINAL, 1, ["alpha", "delta"], winner="alpha"),
            make_match("SF2", KumiteLevel.SEMIFINAL, 2, ["bravo", "charlie"], winner="charlie"),
            make_match("F1", KumiteLevel.FINAL, 1, ["alpha", "charlie"], winner="charlie"),
        ],
    )


class FakeDrawGenerator:
    """Draw generator that pairs advancing competitors in order"""

    def __init__(self):
        self.calls = []

    def generate(self, category, level, advancing):
        self.calls.append((category.category_id, level, list(advancing)))
        if isinstance(level, KataRound):
            return [
                Performance(
                    performance_id=f"{level.name}-{i + 1}",
                    category_id=category.category_id,
                    competitor_id=a.competitor_id,
                    competitor_name=a.competitor_name,
                    round=level,
                    performance_order=i + 1,
                )
                for i, a in enumerate(advancing)
            ]

        advancing = list(advancing)
        matches = []
        for i in range(0, len(advancing), 2):
            pair = advancing[i:i + 2]
            match_id = f"{level.name}-{i // 2 + 1}"
            matches.append(Match(
                match_id=match_id,
                category_id=category.category_id,
                level=level,
                match_order=i // 2 + 1,
                participants=[
                    MatchParticipant(
                        participant_id=f"{match_id}-P{j + 1}",
                        competitor_id=p.competitor_id,
                        competitor_name=p.competitor_name,
                    )
                    for j, p in enumerate(pair)
                ],
            ))
        return matches


@pytest.fixture
def draw_generator():
    return FakeDrawGenerator()


class FakeSnapshotSource:
    """Snapshot source backed by a dict"""

    def __init__(self, snapshots=None):
        self.snapshots = dict(snapshots or {})

    def fetch_snapshot(self, category_id):
        return self.snapshots[category_id]


@pytest.fixture
def snapshot_source():
    return FakeSnapshotSource()
