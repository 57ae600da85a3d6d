from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..config import MATCHING_CONFIG
from .profile import age_from_birth


@dataclass
class MatchCandidate:
    user: dict[str, Any]
    score: int
    score_breakdown: dict[str, int] = field(default_factory=dict)


def _positions(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple)):
        return []
    return [str(v) for v in values if v]


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _age_range(prefs: dict[str, Any]) -> tuple[int, int] | None:
    min_age = _to_int(prefs.get("min_age"))
    max_age = _to_int(prefs.get("max_age"))
    # 0 counts as unset
    if not min_age or not max_age:
        return None
    return min_age, max_age


def profile_age(profile: dict[str, Any], today: date) -> int | None:
    if profile.get("age") is not None:
        return _to_int(profile.get("age"))
    return age_from_birth(profile.get("birth_month"), profile.get("birth_year"), today)


def score_candidate(
    self_profile: dict[str, Any],
    self_preferences: dict[str, Any],
    candidate: dict[str, Any],
    cfg: dict[str, Any] | None = None,
) -> tuple[int, bool, dict[str, int]]:
    """Mutually-gated compatibility between the viewer and one candidate.

    A criterion either side left unset is skipped. A criterion both sides can
    be checked against must hold, otherwise the pair is rejected. City is a
    bonus only.
    """
    cfg = {**MATCHING_CONFIG, **(cfg or {})}
    position_w = int(cfg["POSITION_W"])
    age_w = int(cfg["AGE_W"])
    city_w = int(cfg["CITY_W"])

    their_prefs = candidate.get("match_preferences") or {}
    self_prefs = self_preferences or {}
    breakdown: dict[str, int] = {}
    score = 0
    is_match = True

    self_position = self_profile.get("position")
    their_position = candidate.get("position")

    their_wanted = _positions(their_prefs.get("looking_for_positions"))
    if their_wanted and self_position:
        if self_position in their_wanted:
            score += position_w
            breakdown["they_want_your_position"] = position_w
        else:
            is_match = False

    self_wanted = _positions(self_prefs.get("looking_for_positions"))
    if self_wanted and their_position:
        if their_position in self_wanted:
            score += position_w
            breakdown["you_want_their_position"] = position_w
        else:
            is_match = False

    self_age = _to_int(self_profile.get("age"))
    their_age = _to_int(candidate.get("age"))

    their_range = _age_range(their_prefs)
    if their_range and self_age is not None:
        if their_range[0] <= self_age <= their_range[1]:
            score += age_w
            breakdown["your_age_in_their_range"] = age_w
        else:
            is_match = False

    self_range = _age_range(self_prefs)
    if self_range and their_age is not None:
        if self_range[0] <= their_age <= self_range[1]:
            score += age_w
            breakdown["their_age_in_your_range"] = age_w
        else:
            is_match = False

    preferred_city = str(self_prefs.get("preferred_city") or "").strip()
    their_city = str(candidate.get("city") or "").strip()
    if preferred_city and their_city:
        if their_city.lower() == preferred_city.lower():
            score += city_w
            breakdown["preferred_city"] = city_w

    return score, is_match, breakdown


def compute_matches(
    self_profile: dict[str, Any],
    self_preferences: dict[str, Any],
    candidate_pool: list[dict[str, Any]],
    cfg: dict[str, Any] | None = None,
) -> list[MatchCandidate]:
    self_id = str(self_profile.get("id") or "")
    matches: list[MatchCandidate] = []
    for candidate in candidate_pool:
        prefs = candidate.get("match_preferences") or {}
        if not prefs.get("ready_to_match"):
            continue
        if str(candidate.get("id") or "") == self_id:
            continue
        score, is_match, breakdown = score_candidate(self_profile, self_preferences, candidate, cfg)
        if is_match and score > 0:
            matches.append(MatchCandidate(user=candidate, score=score, score_breakdown=breakdown))
    # sorted() is stable, so equal scores keep pool order
    return sorted(matches, key=lambda m: m.score, reverse=True)
