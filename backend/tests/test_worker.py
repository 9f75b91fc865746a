import pytest

from virality.analyzers import ViralityVerdict
from virality.models import AnalysisStatus
from virality.schemas import AnalysisCreate
from virality.workers.analyze_tasks import run_scoring

from conftest import ALICE, CREATE_PAYLOAD


class FakeScorer:
    def __init__(self, verdict=None, error=None):
        self.verdict = verdict
        self.error = error
        self.calls = []

    async def score(self, content, content_type, platforms, target_audience):
        self.calls.append((content, content_type, platforms, target_audience))
        if self.error:
            raise self.error
        return self.verdict


@pytest.fixture
def pending(store, alice_profile):
    payload = AnalysisCreate.model_validate({**CREATE_PAYLOAD, "platforms": ["twitter", "linkedin"]})
    return store.create_analysis(ALICE["id"], payload)


def test_scoring_completes_analysis(db_session, settings, store, pending):
    verdict = ViralityVerdict(
        overall_score=77,
        insights=[
            {"platform": "twitter", "virality_score": 80, "metrics": {"hashtags": ["#ai"]}, "recommendations": ["Post at 9am"]},
            {"platform": "linkedin", "virality_score": 70, "metrics": {}, "recommendations": ["Add a question"]},
            {"platform": "tiktok", "virality_score": 99, "metrics": {}, "recommendations": ["Not selected"]},
        ],
    )
    scorer = FakeScorer(verdict)

    result = run_scoring(db_session, str(pending.id), settings, scorer=scorer)

    assert result == {"status": "completed", "overall_virality_score": 77}
    analysis = store.get_analysis(pending.id, ALICE["id"])
    assert analysis.status == AnalysisStatus.COMPLETED
    assert analysis.overall_virality_score == 77
    assert sorted(i.platform for i in analysis.platform_insights) == ["linkedin", "twitter"]
    assert scorer.calls[0][0] == "hello"
    assert scorer.calls[0][2] == ["twitter", "linkedin"]


def test_scoring_failure_marks_analysis_failed(db_session, settings, store, pending):
    scorer = FakeScorer(error=ValueError("LLM returned garbage"))

    result = run_scoring(db_session, str(pending.id), settings, scorer=scorer)

    assert result["status"] == "failed"
    analysis = store.get_analysis(pending.id, ALICE["id"])
    assert analysis.status == AnalysisStatus.FAILED
    assert analysis.overall_virality_score is None
    assert analysis.error_message == "ValueError: LLM returned garbage"


def test_non_pending_analysis_is_skipped(db_session, settings, store, pending):
    store.update_analysis(pending.id, ALICE["id"], status=AnalysisStatus.PROCESSING)
    scorer = FakeScorer()

    result = run_scoring(db_session, str(pending.id), settings, scorer=scorer)

    assert result == {"status": "processing", "skipped": True}
    assert scorer.calls == []


@pytest.mark.parametrize("analysis_id", ["not-a-uuid", "33333333-3333-4333-8333-333333333333"])
def test_missing_analysis(db_session, settings, analysis_id):
    assert run_scoring(db_session, analysis_id, settings, scorer=FakeScorer()) == {"error": "Analysis not found"}
