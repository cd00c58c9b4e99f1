"""
Progression Engine: result reporting, bracket cascade and league standings.

Match state machine: SCHEDULED → REPORTED → FINAL.

On FINAL:
- bracket matches push the winner (and the loser, for third-place and
  losers-bracket paths) into the downstream slot this match feeds: team1 when
  it is the downstream match's left feeder, team2 when right
- round-robin matches recompute the division's standings; once every RR match
  of the division is FINAL, pending playoff rank slots are filled
- downstream matches that became fully known but have no field yet are
  allocated; if nothing fits they stay in preview

Each public call runs under the event lock and commits once. Any validation
failure rolls back, so the match is left exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from sqlmodel import Session, select

from event_scheduler.models import DivisionStanding, LeagueScoringConfig, Match, MatchStatus, MatchType
from event_scheduler.services.allocator import allocate_single
from event_scheduler.services.event_repository import load_event_with_relations, load_matches
from event_scheduler.services.progression_errors import MatchNotFoundError, ProgressionValidationError
from event_scheduler.services.scoreline import Scoreline, build_scoreline, decide_winner, validate_scoreline
from event_scheduler.services.snapshot import EventSnapshot
from event_scheduler.services.standings import compute_standings
from event_scheduler.utils.locks import acquire_event_lock

logger = logging.getLogger(__name__)


@dataclass
class ProgressionResult:
    match: Match
    advanced_count: int = 0
    reallocated_match_ids: List[int] = field(default_factory=list)
    standings_updated: bool = False


# ============================================================================
# Public API
# ============================================================================


def apply_result(
    session: Session,
    match_id: int,
    scoreline: Union[Scoreline, str, dict],
    finalize: bool = False,
    override: bool = False,
    event_id: Optional[int] = None,
) -> ProgressionResult:
    """
    Record a result (SCHEDULED/REPORTED → REPORTED), optionally finalizing it.

    Args:
        session: Database session (committed on success, rolled back on error)
        match_id: Match to report
        scoreline: Scoreline, or a score string such as "6-3 4-6 10-7"
        finalize: Also move the match to FINAL
        override: Allow replacing the result of a FINAL match (requires finalize)
        event_id: When given, the match must belong to this event

    Raises:
        MatchNotFoundError: unknown match
        ProgressionValidationError: incomplete scoreline or disallowed transition
    """
    try:
        match = _load_locked_match(session, match_id, event_id)
        if match.team1_id is None or match.team2_id is None:
            raise ProgressionValidationError(f"Match {match.match_code} does not have both teams yet")
        if match.status == MatchStatus.FINAL.value and not override:
            raise ProgressionValidationError(
                f"Match {match.match_code} is FINAL; pass override=True to replace its result"
            )
        # A FINAL result is only replaced together with its cascade
        if match.status == MatchStatus.FINAL.value and not finalize:
            raise ProgressionValidationError(
                f"Match {match.match_code} is FINAL; an override must also finalize the new result"
            )

        snapshot = load_event_with_relations(session, match.event_id)
        config = _scoring_config(snapshot)
        if not isinstance(scoreline, Scoreline):
            scoreline = build_scoreline(score=scoreline)
        validate_scoreline(scoreline, config)
        _check_outcome(match, scoreline, config)

        match.team1_points = list(scoreline.team1_points)
        match.team2_points = list(scoreline.team2_points)
        match.tiebreak_winner = scoreline.tiebreak_winner
        match.status = MatchStatus.REPORTED.value
        match.result_revision = (match.result_revision or 0) + 1
        match.reported_at = datetime.utcnow()
        session.add(match)
        logger.info(f"Result reported for match {match.match_code} (revision {match.result_revision})")

        result = ProgressionResult(match=match)
        if finalize:
            result = _finalize(session, snapshot, match, config, override)

        session.commit()
        session.refresh(result.match)
        return result
    except Exception:
        session.rollback()
        raise


def finalize(session: Session, match_id: int, override: bool = False, event_id: Optional[int] = None) -> ProgressionResult:
    """
    REPORTED → FINAL, then cascade.

    Raises:
        MatchNotFoundError: unknown match
        ProgressionValidationError: not REPORTED, or re-finalizing without override
    """
    try:
        match = _load_locked_match(session, match_id, event_id)
        snapshot = load_event_with_relations(session, match.event_id)
        result = _finalize(session, snapshot, match, _scoring_config(snapshot), override)
        session.commit()
        session.refresh(result.match)
        return result
    except Exception:
        session.rollback()
        raise


# ============================================================================
# Internals
# ============================================================================


def _load_locked_match(session: Session, match_id: int, event_id: Optional[int]) -> Match:
    match = session.get(Match, match_id)
    if not match or (event_id is not None and match.event_id != event_id):
        raise MatchNotFoundError(f"Match {match_id} not found")
    acquire_event_lock(session, match.event_id)
    session.refresh(match)
    return match


def _scoring_config(snapshot: EventSnapshot) -> LeagueScoringConfig:
    return snapshot.scoring_config or LeagueScoringConfig()


def _check_outcome(match: Match, scoreline: Scoreline, config: LeagueScoringConfig) -> Optional[int]:
    winner = decide_winner(scoreline.team1_points, scoreline.team2_points, scoreline.tiebreak_winner, config.uses_sets)
    if winner is None:
        if match.match_type != MatchType.RR.value:
            raise ProgressionValidationError(
                f"Match {match.match_code} is an elimination match and needs a winner; set tiebreak_winner"
            )
        if not config.allow_draws:
            raise ProgressionValidationError(f"Draws are not allowed for match {match.match_code}")
    return winner


def _finalize(
    session: Session, snapshot: EventSnapshot, match: Match, config: LeagueScoringConfig, override: bool
) -> ProgressionResult:
    if match.status != MatchStatus.REPORTED.value:
        raise ProgressionValidationError(f"Match {match.match_code} must be REPORTED to finalize (is {match.status})")
    if match.finalized_at is not None and not override:
        raise ProgressionValidationError(
            f"Match {match.match_code} was already finalized; pass override=True to finalize again"
        )

    scoreline = Scoreline(list(match.team1_points or []), list(match.team2_points or []), match.tiebreak_winner)
    winner_side = _check_outcome(match, scoreline, config)

    previous_winner, previous_loser = match.winner_team_id, match.loser_team_id
    if winner_side is None:
        match.winner_team_id, match.loser_team_id, match.is_draw = None, None, True
    elif winner_side == 1:
        match.winner_team_id, match.loser_team_id, match.is_draw = match.team1_id, match.team2_id, False
    else:
        match.winner_team_id, match.loser_team_id, match.is_draw = match.team2_id, match.team1_id, False
    match.status = MatchStatus.FINAL.value
    match.finalized_at = datetime.utcnow()
    session.add(match)

    result = ProgressionResult(match=match)
    resolved: List[Match] = []

    if match.winner_next_match_id is not None:
        result.advanced_count += _advance(
            session, match, match.winner_next_match_id, match.winner_team_id, previous_winner, resolved, loser_path=False
        )
    if match.loser_next_match_id is not None:
        result.advanced_count += _advance(
            session, match, match.loser_next_match_id, match.loser_team_id, previous_loser, resolved, loser_path=True
        )

    if match.match_type == MatchType.RR.value:
        session.flush()
        rows = recompute_division_standings(session, snapshot, match.division_id, config)
        result.standings_updated = True
        result.advanced_count += _seed_playoffs(session, snapshot, match.division_id, rows, resolved)

    session.flush()
    result.reallocated_match_ids = _reallocate(session, snapshot, resolved)
    logger.info(
        f"Match {match.match_code} finalized (winner={match.winner_team_id}, draw={match.is_draw}, "
        f"advanced={result.advanced_count})"
    )
    return result


def _advance(
    session: Session,
    match: Match,
    target_id: int,
    team_id: Optional[int],
    previous_team_id: Optional[int],
    resolved: List[Match],
    loser_path: bool = False,
) -> int:
    """
    Put team_id into the downstream slot fed by `match`. Returns 1 if a slot changed.

    A slot holding another team is only replaced when it holds this match's
    previous result and the downstream match has not been played.
    """
    target = session.get(Match, target_id)
    if target is None or team_id is None:
        return 0

    # A grand-final reset is fed twice by the same match: winner left, loser right
    same_feeder = target.previous_left_match_id == match.id and target.previous_right_match_id == match.id
    if same_feeder:
        slot = "team2_id" if loser_path else "team1_id"
    else:
        slot = "team1_id" if target.previous_left_match_id == match.id else "team2_id"
    other_slot = "team2_id" if slot == "team1_id" else "team1_id"
    current = getattr(target, slot)
    if current == team_id:
        return 0

    if current is not None:
        if current != previous_team_id:
            raise ProgressionValidationError(
                f"Match {target.match_code} {slot} already holds team {current}; refusing to overwrite"
            )
        if target.status != MatchStatus.SCHEDULED.value:
            raise ProgressionValidationError(
                f"Cannot change the result of {match.match_code}: downstream match {target.match_code} "
                f"is already {target.status}"
            )
        logger.info(f"Vacating team {current} from {target.match_code} {slot} (result override)")

    if not same_feeder and getattr(target, other_slot) == team_id:
        raise ProgressionValidationError(f"Team {team_id} is already in match {target.match_code}")

    setattr(target, slot, team_id)
    session.add(target)
    if target.team1_id is not None and target.team2_id is not None:
        resolved.append(target)
    return 1


def recompute_division_standings(
    session: Session, snapshot: EventSnapshot, division_id: Optional[int], config: Optional[LeagueScoringConfig] = None
) -> List[DivisionStanding]:
    """Replace a division's standing rows with a fresh computation from its FINAL RR matches."""
    teams = snapshot.teams_by_division().get(division_id, [])
    matches = load_matches(session, snapshot.event.id)
    division_matches = [m for m in matches if m.division_id == division_id]
    ranked = compute_standings(teams, division_matches, config or _scoring_config(snapshot))

    existing = session.exec(
        select(DivisionStanding).where(
            DivisionStanding.event_id == snapshot.event.id, DivisionStanding.division_id == division_id
        )
    ).all()
    for row in existing:
        session.delete(row)
    session.flush()

    rows = []
    now = datetime.utcnow()
    for r in ranked:
        row = DivisionStanding(
            event_id=snapshot.event.id,
            division_id=division_id,
            team_id=r.team_id,
            rank=r.rank,
            played=r.played,
            wins=r.wins,
            losses=r.losses,
            draws=r.draws,
            goals_for=r.goals_for,
            goals_against=r.goals_against,
            goal_difference=r.goal_difference,
            points=r.points,
            updated_at=now,
        )
        session.add(row)
        rows.append(row)
    session.flush()
    return rows


def _seed_playoffs(
    session: Session, snapshot: EventSnapshot, division_id: Optional[int], standings: List[DivisionStanding], resolved: List[Match]
) -> int:
    matches = [m for m in load_matches(session, snapshot.event.id) if m.division_id == division_id]
    rr = [m for m in matches if m.match_type == MatchType.RR.value]
    if not rr or any(m.status != MatchStatus.FINAL.value for m in rr):
        return 0

    team_by_rank = {s.rank: s.team_id for s in standings}
    filled = 0
    for m in matches:
        if m.team1_seed_rank is None and m.team2_seed_rank is None:
            continue
        if m.status != MatchStatus.SCHEDULED.value:
            logger.warning(f"Playoff match {m.match_code} already {m.status}; not re-seeding")
            continue
        changed = False
        for rank_attr, slot in (("team1_seed_rank", "team1_id"), ("team2_seed_rank", "team2_id")):
            rank = getattr(m, rank_attr)
            if rank is None:
                continue
            team_id = team_by_rank.get(rank)
            if team_id is not None and getattr(m, slot) != team_id:
                setattr(m, slot, team_id)
                changed = True
                filled += 1
        if changed:
            session.add(m)
            if m.team1_id is not None and m.team2_id is not None:
                resolved.append(m)

    if filled:
        logger.info(f"Seeded {filled} playoff slots for division {division_id} from standings")
    return filled


def _reallocate(session: Session, snapshot: EventSnapshot, resolved: List[Match]) -> List[int]:
    pending = [m for m in resolved if not m.is_placed]
    if not pending:
        return []

    placed_ids = []
    event_matches = load_matches(session, snapshot.event.id)
    for target in pending:
        occ = allocate_single(snapshot, target, event_matches)
        if occ is None:
            logger.warning(f"No available field time for match {target.match_code}; leaving it unplaced")
            continue
        target.field_id, target.start, target.end = occ.field_id, occ.start, occ.end
        session.add(target)
        placed_ids.append(target.id)
        logger.info(f"Allocated match {target.match_code} to field {occ.field_id} at {occ.start.isoformat()}")

    session.flush()
    return placed_ids
