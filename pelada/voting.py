"""Post-match voting: the durable vote write and the weekly results.

``submit_vote`` is the write boundary for a ballot. It does not re-check
whether voting is open (the voting screen does that with
``pelada.session.is_voting_open``); it only guarantees that a voter gets at
most one vote per match id. That guarantee comes from the unique key on
``votes(voter_id, match_id)``; there is no "did I vote?" read
before the insert.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from pelada.clock import compute_match_id
from pelada.errors import (
    AlreadyVoted,
    SideEffectPartialFailure,
    StoreUnavailable,
    is_unique_violation,
)
from pelada.players import adjust_moral

logger = logging.getLogger(__name__)

VOTES_TABLE = "votes"

BEST_DELTA = 5
WORST_DELTA = -5


@dataclass
class VoteReceipt:
    match_id: str
    best_score: Optional[int] = None
    worst_score: Optional[int] = None
    warnings: List[SideEffectPartialFailure] = field(default_factory=list)


@dataclass
class MatchResults:
    match_id: str
    best_id: Optional[str]
    worst_id: Optional[str]
    best_votes: int = 0
    worst_votes: int = 0
    total_ballots: int = 0


def submit_vote(conn, voter_id, best_id, worst_id, session, now: datetime) -> VoteReceipt:
    """Store one ballot and apply the moral score changes.

    Args:
        conn: Supabase client.
        voter_id: Id of the voting player.
        best_id: Player voted best of the match (+5 moral, max 100).
        worst_id: Player voted worst of the match (-5 moral, min 0).
        session (MatchSession): Current session; provides the match weekday.
        now (datetime): Local time of the submission.

    Returns:
        VoteReceipt: Match id, new scores and any score update warnings.
            The vote stands even when warnings are present.

    Raises:
        AlreadyVoted: The store rejected a second vote for this match id.
        StoreUnavailable: The insert failed for any other reason.
    """
    match_id = compute_match_id(now, session.match_weekday)
    ballot = {
        "voter_id": voter_id,
        "match_id": match_id,
        "best_voted_id": best_id,
        "worst_voted_id": worst_id,
        "cast_at": now.isoformat(),
    }
    try:
        conn.table(VOTES_TABLE).insert(ballot).execute()
    except Exception as e:
        if is_unique_violation(e):
            logger.info(f"Duplicate vote from {voter_id} for match {match_id}")
            raise AlreadyVoted(voter_id, match_id) from e
        logger.error(f"Error inserting vote for match {match_id}: {e}")
        raise StoreUnavailable("saving the vote", e) from e

    receipt = VoteReceipt(match_id=match_id)
    try:
        receipt.best_score = adjust_moral(conn, best_id, BEST_DELTA, counter="best_votes")
    except SideEffectPartialFailure as warning:
        receipt.warnings.append(warning)
    try:
        receipt.worst_score = adjust_moral(conn, worst_id, WORST_DELTA, counter="worst_votes")
    except SideEffectPartialFailure as warning:
        receipt.warnings.append(warning)

    if receipt.warnings:
        logger.warning(f"Vote for {match_id} stored with {len(receipt.warnings)} score update failures")
    return receipt


def has_voted(conn, voter_id, match_id) -> bool:
    """Whether ``voter_id`` already voted for ``match_id``.

    Only used to pick which screen to show; ``submit_vote`` does not rely
    on it.
    """
    try:
        result = (
            conn.table(VOTES_TABLE)
            .select("id")
            .eq("voter_id", voter_id)
            .eq("match_id", match_id)
            .execute()
        )
    except Exception as e:
        logger.error(f"Error checking vote status for {voter_id}: {e}")
        raise StoreUnavailable("checking your vote", e) from e
    return bool(result.data)


def fetch_votes(conn) -> List[Dict]:
    try:
        result = conn.table(VOTES_TABLE).select("match_id, best_voted_id, worst_voted_id").execute()
    except Exception as e:
        logger.error(f"Error fetching votes: {e}")
        raise StoreUnavailable("loading the votes", e) from e
    return result.data or []


def tally_latest_results(votes) -> Optional[MatchResults]:
    """Winners of the most recent match id among ``votes``.

    Ties go to whoever reached the top count first in ``votes`` order.

    Returns:
        Optional[MatchResults]: None when there are no votes at all.
    """
    votes = [v for v in votes if v.get("match_id")]
    if not votes:
        return None
    latest = max(v["match_id"] for v in votes)
    ballots = [v for v in votes if v["match_id"] == latest]

    best = Counter(v.get("best_voted_id") for v in ballots if v.get("best_voted_id"))
    worst = Counter(v.get("worst_voted_id") for v in ballots if v.get("worst_voted_id"))
    best_id, best_count = best.most_common(1)[0] if best else (None, 0)
    worst_id, worst_count = worst.most_common(1)[0] if worst else (None, 0)
    return MatchResults(
        match_id=latest,
        best_id=best_id,
        worst_id=worst_id,
        best_votes=best_count,
        worst_votes=worst_count,
        total_ballots=len(ballots),
    )
