import json

from flask import current_app
from openai import OpenAIError

TOP_N = 10
DEGREE_POINTS = {"PhD": 20, "Master": 15, "Bachelor": 10, "Associate": 5}
RELEVANT_FIELDS = ("english", "tesol", "tefl", "tesl", "esl", "linguistics", "education", "literature", "teaching")

RANKING_PROMPT = """You are an expert recruitment assistant for English Language Training (ELT) instructors.
Rank the provided candidate data to select the top 10 candidates.
Consider these factors in descending order of importance:
1. Teaching experience (years, especially in ESL/ELT)
2. Relevant education (degrees in English, ESL, TESOL, or Education)
3. Teaching certifications (CELTA, TEFL, TESOL)
4. Native English speaker status
5. Assessment scores (grammar, vocabulary, classroom management)
6. Military experience (a plus but not required)

Return a JSON object with:
1. "rankedCandidates": array of candidate ids in ranked order (best first)
2. "rationale": brief explanation of the ranking methodology and key differentiators"""

FALLBACK_RATIONALE = (
    "Ranked by a weighted score of teaching experience, relevant degree, "
    "teaching certifications, native English proficiency, assessment scores "
    "and military experience."
)


def has_relevant_field(candidate):
    field = (candidate.degree_field or "").lower()
    return any(term in field for term in RELEVANT_FIELDS)


def fallback_score(candidate):
    """Deterministic score in the same order of importance the AI is asked to use."""
    score = min(candidate.years_experience or 0, 15) * 4
    score += DEGREE_POINTS.get(candidate.degree, 0)
    if has_relevant_field(candidate):
        score += 10
    if candidate.has_certifications:
        score += 15
    if candidate.native_english_speaker:
        score += 10
    if candidate.overall_score is not None:
        score += candidate.overall_score / 10
    if candidate.military_experience:
        score += 5
    return score


def rank_by_score(candidates):
    ranked = sorted(candidates, key=lambda c: (-fallback_score(c), c.id))
    return ranked[:TOP_N]


def _candidate_payload(candidate):
    return {
        "id": candidate.id,
        "name": candidate.name,
        "nativeEnglishSpeaker": candidate.native_english_speaker,
        "degree": candidate.degree,
        "degreeField": candidate.degree_field,
        "yearsExperience": candidate.years_experience,
        "hasCertifications": candidate.has_certifications,
        "certifications": candidate.certifications,
        "classroomManagement": candidate.classroom_management,
        "grammarProficiency": candidate.grammar_proficiency,
        "vocabularyProficiency": candidate.vocabulary_proficiency,
        "militaryExperience": candidate.military_experience,
        "status": candidate.status.value,
        "notes": candidate.notes,
    }


def rank_with_ai(client, candidates):
    content = client.complete(
        [
            {"role": "system", "content": RANKING_PROMPT},
            {"role": "user", "content": json.dumps([_candidate_payload(c) for c in candidates])},
        ],
        max_tokens=1000,
        json_mode=True,
    )
    result = json.loads(content or "{}")
    by_id = {c.id: c for c in candidates}
    # first mention wins when the model repeats an id
    ranked_ids = dict.fromkeys(result.get("rankedCandidates", []))
    ranked = [by_id[cid] for cid in ranked_ids if cid in by_id]
    return ranked[:TOP_N], result.get("rationale") or "Candidates ranked based on qualifications."


def rank_candidates(candidates, client=None):
    """
    Return the top candidates with a rationale.

    The AI ranking is used when a configured client is given; anything it
    cannot deliver falls back to the deterministic score.
    """
    candidates = list(candidates)
    if client is not None and client.available and candidates:
        try:
            ranked, rationale = rank_with_ai(client, candidates)
            if ranked:
                return {"rankedCandidates": ranked, "rationale": rationale, "method": "ai"}
            current_app.logger.warning("AI ranking returned no known candidate ids, using score ranking")
        except (OpenAIError, ValueError, TypeError, AttributeError) as exc:
            current_app.logger.error("AI candidate ranking failed: %s", exc)

    return {"rankedCandidates": rank_by_score(candidates), "rationale": FALLBACK_RATIONALE, "method": "score"}
