"""Content ranking signals for posts, comments and wiki pages.

Every function here is pure: counts and timestamps in, a float out. They
accept already-validated non-negative counts and treat "no votes yet" as
an ordinary input with a defined answer (usually 0.0), never an error.

    hot_score           votes + views + recency, for the front page
    wilson_score        quality with confidence, for "best" sorting
    bayesian_average    star ratings pulled toward the site average
    decay_weight        e^(-lambda t) weighting of any time-stamped signal
    controversy_score   large, evenly split vote totals
    trending_score      recent activity relative to baseline
    combined_score      the forum's default blend of the above
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from statistics import NormalDist

from agora_lite.domain.errors import InvalidConfiguration
from agora_lite.domain.types import Timestamp

Z_95 = 1.96

VIEW_WEIGHT = 0.1
RECENCY_WEIGHT = 4.0            # boost of a brand-new post, in log10-vote units
RECENCY_HALF_LIFE_HOURS = 12.0  # boost halves after this many hours
DEFAULT_HALF_LIFE_HOURS = 24.0

MIN_CONTROVERSY_VOTES = 5
CONTROVERSY_EXPONENT = 0.8


def _epoch(moment: datetime | Timestamp) -> Timestamp:
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.timestamp()
    return float(moment)


def _sign(x: int) -> int:
    return (x > 0) - (x < 0)


def hot_score(
    upvotes: int,
    downvotes: int,
    created_at: datetime | Timestamp,
    views: int = 0,
    *,
    now: datetime | Timestamp | None = None,
) -> float:
    """Time-decayed, vote-weighted score for "hot" listings.

        sign(d) * log10(1 + |d|)                      net votes d
      + VIEW_WEIGHT * log10(max(views, 1))
      + RECENCY_WEIGHT / (1 + age_h / RECENCY_HALF_LIFE_HOURS)

    The recency term decays hyperbolically, so the score slides
    continuously with age instead of dropping at a cutoff. Naive
    datetimes are taken as UTC; a created_at in the future counts as
    age zero.
    """
    diff = upvotes - downvotes
    vote_part = _sign(diff) * math.log10(1 + abs(diff))
    view_part = VIEW_WEIGHT * math.log10(max(views, 1))

    now_ts = time.time() if now is None else _epoch(now)
    age_hours = max(0.0, now_ts - _epoch(created_at)) / 3600.0
    recency = RECENCY_WEIGHT / (1.0 + age_hours / RECENCY_HALF_LIFE_HOURS)

    return vote_part + view_part + recency


def z_for_confidence(confidence: float) -> float:
    """Two-sided normal quantile, e.g. 0.95 -> 1.96."""
    if not (0.0 < confidence < 1.0):
        raise InvalidConfiguration(f"confidence must be in (0, 1), got {confidence}")
    if confidence == 0.95:
        return Z_95
    return NormalDist().inv_cdf(1.0 - (1.0 - confidence) / 2.0)


def wilson_score(positive: int, total: int, confidence: float = 0.95) -> float:
    """Lower bound of the Wilson score interval for positive/total.

        (p + z^2/2n - z * sqrt((p(1 - p) + z^2/4n) / n)) / (1 + z^2/n)

    One upvote out of one does not outrank 90 out of 100: the bound
    stays low until there is enough evidence. Returns 0.0 for no votes;
    the result is always in [0, 1].
    """
    if total <= 0:
        return 0.0
    z = z_for_confidence(confidence)
    n = float(total)
    p = min(max(positive, 0), total) / n
    z2 = z * z
    numerator = p + z2 / (2 * n) - z * math.sqrt((p * (1 - p) + z2 / (4 * n)) / n)
    bound = numerator / (1 + z2 / n)
    return min(1.0, max(0.0, bound))


def bayesian_average(
    item_avg: float,
    item_count: int,
    global_avg: float,
    confidence: float,
) -> float:
    """Blend an item's average with the global prior.

        (v / (v + C)) * item_avg + (C / (v + C)) * global_avg

    With few votes v the result sits near the global average; as v grows
    past C it approaches the item's own. 0.0 when v + C == 0.
    """
    v = float(item_count)
    c = float(confidence)
    if v + c <= 0:
        return 0.0
    return (v / (v + c)) * item_avg + (c / (v + c)) * global_avg


def decay_rate(half_life_hours: float) -> float:
    """lambda = ln 2 / half-life."""
    if not half_life_hours > 0:
        raise InvalidConfiguration(f"half_life_hours must be positive, got {half_life_hours}")
    return math.log(2) / half_life_hours


def decay_weight(elapsed_hours: float, half_life_hours: float = DEFAULT_HALF_LIFE_HOURS) -> float:
    """w(t) = e^(-lambda t); 1.0 at t=0, 0.5 after one half-life."""
    return math.exp(-decay_rate(half_life_hours) * max(0.0, elapsed_hours))


def apply_time_decay(
    score: float,
    age: timedelta,
    half_life_hours: float = DEFAULT_HALF_LIFE_HOURS,
) -> float:
    return score * decay_weight(age.total_seconds() / 3600.0, half_life_hours)


def controversy_score(upvotes: int, downvotes: int) -> float:
    """Large when both sides are big and close to even.

        total^0.8 * min(up, down) / max(up, down)

    Zero below MIN_CONTROVERSY_VOTES total votes and for one-sided votes.
    """
    total = upvotes + downvotes
    if total < MIN_CONTROVERSY_VOTES:
        return 0.0
    balance = min(upvotes, downvotes) / max(upvotes, downvotes)
    return total ** CONTROVERSY_EXPONENT * balance


def trending_score(recent_activity: int, baseline_activity: float, window_ratio: float) -> float:
    """Recent activity over what the baseline predicts; > 1 means trending.

    ``window_ratio`` is the recent window's length relative to the
    baseline period (0.1 for "last hour vs. ten-hour baseline"). The
    expectation is floored at one event so cold items don't explode.
    """
    expected = max(1.0, baseline_activity * window_ratio)
    return recent_activity / expected


@dataclass(frozen=True, slots=True)
class RankingParams:
    upvotes: int
    downvotes: int
    created_at: datetime | Timestamp
    views: int = 0
    comments: int = 0


def combined_score(params: RankingParams, *, now: datetime | Timestamp | None = None) -> float:
    """Default forum ordering: half hot score, Wilson quality, engagement."""
    hot = hot_score(params.upvotes, params.downvotes, params.created_at, params.views, now=now)
    quality = wilson_score(params.upvotes, params.upvotes + params.downvotes)
    engagement = 0.5 * math.log10(params.comments + 1)
    return 0.5 * hot + 10.0 * quality + engagement
