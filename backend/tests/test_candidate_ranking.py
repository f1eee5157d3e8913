import json
from types import SimpleNamespace

from eltdash.services.candidate_ranking import fallback_score, rank_candidates


def candidate(cid, **attrs):
    defaults = dict(
        id=cid, name=f"Candidate {cid}", years_experience=None, degree=None, degree_field=None,
        has_certifications=False, certifications=None, native_english_speaker=False,
        military_experience=False, overall_score=None, classroom_management=None,
        grammar_proficiency=None, vocabulary_proficiency=None, notes=None,
        status=SimpleNamespace(value="new"),
    )
    defaults.update(attrs)
    return SimpleNamespace(**defaults)


class FakeClient:
    available = True

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error

    def complete(self, messages, **kwargs):
        if self.error:
            raise self.error
        return self.content


def test_fallback_score_weights():
    strong = candidate(1, years_experience=20, degree="Master", degree_field="TESOL",
                       has_certifications=True, native_english_speaker=True,
                       overall_score=80, military_experience=True)
    # experience capped at 15 years
    assert fallback_score(strong) == 60 + 15 + 10 + 15 + 10 + 8 + 5
    assert fallback_score(candidate(2)) == 0


def test_rank_without_client_uses_score():
    pool = [
        candidate(1, years_experience=2),
        candidate(2, years_experience=10, has_certifications=True),
        candidate(3, years_experience=5, degree="PhD"),
    ]
    result = rank_candidates(pool)
    assert result["method"] == "score"
    assert [c.id for c in result["rankedCandidates"]] == [2, 3, 1]


def test_rank_keeps_top_ten():
    pool = [candidate(i, years_experience=i) for i in range(1, 16)]
    result = rank_candidates(pool)
    assert len(result["rankedCandidates"]) == 10
    assert result["rankedCandidates"][0].id == 15


def test_ai_ranking_used_when_available(app):
    pool = [candidate(1), candidate(2)]
    client = FakeClient(json.dumps({"rankedCandidates": [2, 1], "rationale": "Two first"}))
    result = rank_candidates(pool, client=client)
    assert result["method"] == "ai"
    assert result["rationale"] == "Two first"
    assert [c.id for c in result["rankedCandidates"]] == [2, 1]


def test_bad_ai_response_falls_back(app):
    pool = [candidate(1, years_experience=1), candidate(2, years_experience=3)]
    result = rank_candidates(pool, client=FakeClient("not json"))
    assert result["method"] == "score"
    assert [c.id for c in result["rankedCandidates"]] == [2, 1]


def test_unknown_ids_fall_back(app):
    pool = [candidate(1)]
    result = rank_candidates(pool, client=FakeClient(json.dumps({"rankedCandidates": [99]})))
    assert result["method"] == "score"


def test_ai_ranking_drops_repeated_ids(app):
    pool = [candidate(1), candidate(2), candidate(3)]
    client = FakeClient(json.dumps({"rankedCandidates": [1, 1, 3, 1, 2, 3]}))
    result = rank_candidates(pool, client=client)
    assert result["method"] == "ai"
    assert [c.id for c in result["rankedCandidates"]] == [1, 3, 2]
