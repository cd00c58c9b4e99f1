"""
Match Generator

Turns an event snapshot into an abstract match list: round-robin rotations for
leagues (plus an optional playoff bracket seeded by standings rank) and
single- or double-elimination brackets for tournaments. Bracket topology is expressed as
match-code links (previous_left/previous_right/winner_next/loser_next); the
orchestrator turns codes into row ids once matches are persisted.

No I/O and no randomness: every ordering is a strict total order over
(seed, stable input index), so unchanged input reproduces the same codes.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from event_scheduler.models import EventType, MatchType, Team
from event_scheduler.services.schedule_errors import (
    INSUFFICIENT_PARTICIPANTS,
    INVALID_PLAYOFF_CUTOFF,
    ScheduleError,
)
from event_scheduler.services.snapshot import EventSnapshot

# =============================================================================
# Abstract matches
# =============================================================================


@dataclass(frozen=True)
class Entrant:
    """One participant slot in a division: a real team or a projected placeholder."""

    team_id: Optional[int]
    label: str
    seed: Optional[int]
    index: int  # stable input position


@dataclass
class AbstractMatch:
    code: str
    division_id: Optional[int]
    match_type: str
    round_index: int
    sequence_in_round: int
    placeholder_side_a: str = "TBD"
    placeholder_side_b: str = "TBD"
    losers_bracket: bool = False
    previous_left_code: Optional[str] = None
    previous_right_code: Optional[str] = None
    winner_next_code: Optional[str] = None
    loser_next_code: Optional[str] = None

    @property
    def feeder_codes(self) -> List[str]:
        return [c for c in (self.previous_left_code, self.previous_right_code) if c]


@dataclass
class ResolvedMatch(AbstractMatch):
    """Participants are known teams, projected placeholders, or feeder winners."""

    team1_id: Optional[int] = None
    team2_id: Optional[int] = None


@dataclass
class PendingRankMatch(AbstractMatch):
    """Playoff entry match whose participants are keyed by final league rank."""

    team1_rank: Optional[int] = None
    team2_rank: Optional[int] = None


GeneratedMatch = Union[ResolvedMatch, PendingRankMatch]


@dataclass
class GeneratedSchedule:
    matches: List[GeneratedMatch]
    seeding: Dict[Optional[int], List[Entrant]]


def known_team_ids(match: GeneratedMatch) -> Tuple[int, ...]:
    """Team ids already fixed on a match (never includes rank or feeder slots)."""
    if isinstance(match, ResolvedMatch):
        return tuple(t for t in (match.team1_id, match.team2_id) if t is not None)
    return ()


# =============================================================================
# Entrants
# =============================================================================


def entrant_sort_key(seed: Optional[int], index: int) -> Tuple:
    """seed ascending (unset seeds last), then stable input index"""
    return (seed is None, seed if seed is not None else 0, index)


def order_entrants(teams: List[Team], roster: Optional[List[Team]] = None) -> List[Entrant]:
    roster = roster if roster is not None else teams
    entrants = [
        Entrant(team_id=team.id, label=team.name, seed=team.seed, index=roster.index(team))
        for team in teams
    ]
    return sorted(entrants, key=lambda e: entrant_sort_key(e.seed, e.index))


def project_entrants(snapshot: EventSnapshot, participant_count: Optional[int] = None) -> Dict[Optional[int], List[Entrant]]:
    """
    Resolve the ordered entrant list per division.

    With participant_count (roster not final yet), each division is padded with
    "Open slot k" placeholders up to its projected size: the division's
    max_participants when set, otherwise an even share of participant_count.
    """
    grouped = snapshot.teams_by_division()
    division_ids = snapshot.division_ids
    share = math.ceil(participant_count / len(division_ids)) if participant_count else 0

    result: Dict[Optional[int], List[Entrant]] = {}
    next_index = len(snapshot.teams)
    for div_id in division_ids:
        teams = grouped.get(div_id, [])
        entrants = order_entrants(teams, roster=snapshot.teams)
        if participant_count:
            division = snapshot.division(div_id)
            capacity = division.max_participants if division and division.max_participants else share
            for k in range(len(entrants) + 1, capacity + 1):
                entrants.append(Entrant(team_id=None, label=f"Open slot {k}", seed=None, index=next_index))
                next_index += 1
        result[div_id] = entrants
    return result


# =============================================================================
# Round robin
# =============================================================================


def rr_round_count(team_count: int) -> int:
    """Even n: n-1 rounds. Odd n: n rounds (one team idle per round)."""
    if team_count % 2 == 0:
        return team_count - 1
    return team_count


def rr_pairings_by_round(team_count: int) -> List[Tuple[int, int, int, int]]:
    """
    Round-robin pairings via the circle method.

    Returns list of (round_index, sequence_in_round, idx_a, idx_b) with 0-based
    entrant positions. Odd counts get a BYE position; pairings against it are
    dropped, leaving that round's opponent idle. Position 0 stays fixed while
    the others rotate.
    """
    n = team_count
    n2 = n + 1 if n % 2 == 1 else n
    half = n2 // 2
    bye_idx = n if n % 2 == 1 else -1

    result: List[Tuple[int, int, int, int]] = []
    positions = list(range(n2))

    for round_num in range(1, n2):
        seq = 0
        for i in range(half):
            a, b = positions[i], positions[n2 - 1 - i]
            if a == bye_idx or b == bye_idx:
                continue
            seq += 1
            result.append((round_num, seq, min(a, b), max(a, b)))
        # Rotate: keep 0, move last to second, shift others
        positions = [positions[0]] + [positions[-1]] + positions[1:-1]

    return result


def generate_round_robin(
    division_id: Optional[int], entrants: List[Entrant], games_per_opponent: int = 1
) -> List[ResolvedMatch]:
    """One rotation per games_per_opponent; every second rotation swaps sides."""
    prefix = division_key(division_id)
    rounds_per_cycle = rr_round_count(len(entrants))
    pairings = rr_pairings_by_round(len(entrants))

    matches: List[ResolvedMatch] = []
    for cycle in range(max(games_per_opponent, 1)):
        for round_num, seq, idx_a, idx_b in pairings:
            if cycle % 2 == 1:
                idx_a, idx_b = idx_b, idx_a
            round_index = cycle * rounds_per_cycle + round_num
            a, b = entrants[idx_a], entrants[idx_b]
            matches.append(
                ResolvedMatch(
                    code=f"{prefix}-RR-R{round_index:02d}-M{seq:02d}",
                    division_id=division_id,
                    match_type=MatchType.RR.value,
                    round_index=round_index,
                    sequence_in_round=seq,
                    placeholder_side_a=a.label,
                    placeholder_side_b=b.label,
                    team1_id=a.team_id,
                    team2_id=b.team_id,
                )
            )
    return matches


# =============================================================================
# Single elimination
# =============================================================================


def next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size


def standard_seed_order(size: int) -> List[int]:
    """
    Bracket line order for `size` seeds so that higher seeds meet later.

    size=8 -> [1, 8, 4, 5, 2, 7, 3, 6]
    """
    order = [1]
    while len(order) < size:
        n = len(order) * 2
        order = [s for seed in order for s in (seed, n + 1 - seed)]
    return order


# A bracket side before it becomes a team slot: ("seed", position), ("match", code)
# for that match's winner, or ("loser", code) for its loser
_Side = Tuple[str, Union[int, str]]


@dataclass
class _BracketNode:
    code: str
    round_index: int
    sequence_in_round: int
    left: _Side
    right: _Side
    match_type: str
    losers_bracket: bool = False


def _bracket_nodes(seed_count: int, code_prefix: str, match_type: str, third_place: bool) -> List[_BracketNode]:
    size = next_power_of_two(seed_count)
    lines = [seed if seed <= seed_count else None for seed in standard_seed_order(size)]

    nodes: List[_BracketNode] = []
    advancing: List[_Side] = []
    round_index = 1

    # Round 1: seeds beyond seed_count are byes; their opponent advances directly
    seq = 0
    for i in range(0, size, 2):
        a, b = lines[i], lines[i + 1]
        if a is not None and b is not None:
            seq += 1
            node = _BracketNode(
                code=f"{code_prefix}-R{round_index}-M{seq:02d}",
                round_index=round_index,
                sequence_in_round=seq,
                left=("seed", a),
                right=("seed", b),
                match_type=match_type,
            )
            nodes.append(node)
            advancing.append(("match", node.code))
        else:
            advancing.append(("seed", a if a is not None else b))

    while len(advancing) > 1:
        round_index += 1
        next_round: List[_Side] = []
        for seq, i in enumerate(range(0, len(advancing), 2), start=1):
            node = _BracketNode(
                code=f"{code_prefix}-R{round_index}-M{seq:02d}",
                round_index=round_index,
                sequence_in_round=seq,
                left=advancing[i],
                right=advancing[i + 1],
                match_type=match_type,
            )
            nodes.append(node)
            next_round.append(("match", node.code))
        advancing = next_round

    final = nodes[-1]
    if third_place and final.left[0] == "match" and final.right[0] == "match":
        nodes.append(
            _BracketNode(
                code=f"{code_prefix}-3RD",
                round_index=final.round_index,
                sequence_in_round=2,
                left=("loser", final.left[1]),
                right=("loser", final.right[1]),
                match_type=MatchType.THIRD_PLACE.value,
            )
        )
    return nodes


def _losers_round(
    pairs: List[Tuple[_Side, _Side]], code_prefix: str, lb_round: int, depth: Dict[str, int], nodes: List[_BracketNode]
) -> List[_Side]:
    advancing: List[_Side] = []
    for seq, (left, right) in enumerate(pairs, start=1):
        node = _BracketNode(
            code=f"{code_prefix}-LB-R{lb_round}-M{seq:02d}",
            round_index=1 + max(depth[str(left[1])], depth[str(right[1])]),
            sequence_in_round=seq,
            left=left,
            right=right,
            match_type=MatchType.BRACKET.value,
            losers_bracket=True,
        )
        depth[node.code] = node.round_index
        nodes.append(node)
        advancing.append(("match", node.code))
    return advancing


def _losers_bracket_nodes(winners: List[_BracketNode], code_prefix: str) -> List[_BracketNode]:
    """
    Losers bracket fed by every winners-bracket loser, then the grand final and its reset.

    Before a winners round's losers drop in, the surviving losers-bracket
    entrants are halved until there are no more of them than droppers. Each
    survivor then meets one dropper; droppers left over pass straight through.
    N entrants give N-2 losers-bracket matches, so 2N-1 matches overall.
    """
    depth = {node.code: node.round_index for node in winners}
    rounds: Dict[int, List[_BracketNode]] = {}
    for node in winners:
        rounds.setdefault(node.round_index, []).append(node)

    nodes: List[_BracketNode] = []
    survivors: List[_Side] = []
    lb_round = 0
    for round_index in sorted(rounds):
        dropping: List[_Side] = [("loser", node.code) for node in reversed(rounds[round_index])]
        while len(survivors) > len(dropping):
            lb_round += 1
            pairs = [(survivors[i], survivors[i + 1]) for i in range(0, len(survivors) - 1, 2)]
            carry = survivors[-1:] if len(survivors) % 2 else []
            survivors = _losers_round(pairs, code_prefix, lb_round, depth, nodes) + carry

        pairs = list(zip(survivors, dropping))
        carry = dropping[len(survivors):]
        if pairs:
            lb_round += 1
            survivors = _losers_round(pairs, code_prefix, lb_round, depth, nodes) + carry
        else:
            survivors = carry

    champion = winners[-1]
    grand_final = _BracketNode(
        code=f"{code_prefix}-GF-M01",
        round_index=1 + max(champion.round_index, depth[str(survivors[0][1])]),
        sequence_in_round=1,
        left=("match", champion.code),
        right=survivors[0],
        match_type=MatchType.BRACKET.value,
    )
    reset = _BracketNode(
        code=f"{code_prefix}-GF-M02",
        round_index=grand_final.round_index + 1,
        sequence_in_round=1,
        left=("match", grand_final.code),
        right=("loser", grand_final.code),
        match_type=MatchType.BRACKET.value,
    )
    return nodes + [grand_final, reset]


def _link_bracket(matches: Dict[str, GeneratedMatch], nodes: List[_BracketNode]) -> None:
    for node in nodes:
        match = matches[node.code]
        for side, attr in ((node.left, "previous_left_code"), (node.right, "previous_right_code")):
            if side[0] == "seed":
                continue
            feeder = matches[str(side[1])]
            setattr(match, attr, feeder.code)
            if side[0] == "loser":
                feeder.loser_next_code = match.code
            else:
                feeder.winner_next_code = match.code


def _feeder_label(side: _Side) -> str:
    return f"{'Loser' if side[0] == 'loser' else 'Winner'} {side[1]}"


def _entrant_matches(division_id: Optional[int], entrants: List[Entrant], nodes: List[_BracketNode]) -> List[ResolvedMatch]:
    matches: Dict[str, GeneratedMatch] = {}
    for node in nodes:
        match = ResolvedMatch(
            code=node.code,
            division_id=division_id,
            match_type=node.match_type,
            round_index=node.round_index,
            sequence_in_round=node.sequence_in_round,
            losers_bracket=node.losers_bracket,
        )
        for side, slot in ((node.left, 1), (node.right, 2)):
            if side[0] == "seed":
                entrant = entrants[int(side[1]) - 1]
                setattr(match, f"team{slot}_id", entrant.team_id)
                label = entrant.label
            else:
                label = _feeder_label(side)
            setattr(match, "placeholder_side_a" if slot == 1 else "placeholder_side_b", label)
        matches[node.code] = match

    _link_bracket(matches, nodes)
    return [matches[node.code] for node in nodes]


def generate_single_elimination(
    division_id: Optional[int], entrants: List[Entrant], third_place: bool = False
) -> List[ResolvedMatch]:
    """
    Seeded single-elimination bracket (N-1 matches, plus an optional third-place match).

    Entrants must already be in seed order. Byes go to the top seeds and the
    bye entrant is placed straight into its round-2 slot.
    """
    nodes = _bracket_nodes(len(entrants), f"{division_key(division_id)}-BR", MatchType.BRACKET.value, third_place)
    return _entrant_matches(division_id, entrants, nodes)


def generate_double_elimination(division_id: Optional[int], entrants: List[Entrant]) -> List[ResolvedMatch]:
    """Seeded winners bracket plus a losers bracket, grand final and reset (2N-1 matches)."""
    prefix = division_key(division_id)
    winners = _bracket_nodes(len(entrants), f"{prefix}-BR", MatchType.BRACKET.value, third_place=False)
    return _entrant_matches(division_id, entrants, winners + _losers_bracket_nodes(winners, prefix))


def generate_playoff_bracket(division_id: Optional[int], playoff_team_count: int, third_place: bool = False) -> List[GeneratedMatch]:
    """
    League playoff bracket keyed by projected standings rank 1..playoff_team_count.

    Matches with at least one rank slot are PendingRankMatch; deeper rounds are
    fed only by other playoff matches and stay ResolvedMatch with empty slots.
    """
    nodes = _bracket_nodes(playoff_team_count, f"{division_key(division_id)}-PO", MatchType.PLAYOFF.value, third_place)

    matches: Dict[str, GeneratedMatch] = {}
    for node in nodes:
        common = dict(
            code=node.code,
            division_id=division_id,
            match_type=node.match_type,
            round_index=node.round_index,
            sequence_in_round=node.sequence_in_round,
            placeholder_side_a=_rank_or_feeder_label(node.left),
            placeholder_side_b=_rank_or_feeder_label(node.right),
        )
        if node.left[0] == "seed" or node.right[0] == "seed":
            matches[node.code] = PendingRankMatch(
                team1_rank=int(node.left[1]) if node.left[0] == "seed" else None,
                team2_rank=int(node.right[1]) if node.right[0] == "seed" else None,
                **common,
            )
        else:
            matches[node.code] = ResolvedMatch(**common)

    _link_bracket(matches, nodes)
    return [matches[node.code] for node in nodes]


def _rank_or_feeder_label(side: _Side) -> str:
    if side[0] == "seed":
        return f"Rank {side[1]}"
    return _feeder_label(side)


# =============================================================================
# Entry point
# =============================================================================


def division_key(division_id: Optional[int]) -> str:
    return f"D{division_id}" if division_id is not None else "OPEN"


def _division_name(snapshot: EventSnapshot, division_id: Optional[int]) -> str:
    division = snapshot.division(division_id)
    return division.name if division else "Open"


def generate_matches(snapshot: EventSnapshot, participant_count: Optional[int] = None) -> GeneratedSchedule:
    """
    Build the abstract match set for a LEAGUE or TOURNAMENT event.

    Raises:
        ScheduleError: insufficient-participants, invalid-playoff-cutoff
    """
    event = snapshot.event
    event_type = EventType(event.event_type)
    seeding = project_entrants(snapshot, participant_count)

    matches: List[GeneratedMatch] = []
    for div_id, entrants in seeding.items():
        name = _division_name(snapshot, div_id)
        if len(entrants) < 2:
            raise ScheduleError(
                INSUFFICIENT_PARTICIPANTS,
                f"Division '{name}' needs at least 2 teams to schedule, found {len(entrants)}.",
            )

        if event_type == EventType.LEAGUE:
            matches.extend(generate_round_robin(div_id, entrants, event.games_per_opponent or 1))

            division = snapshot.division(div_id)
            cutoff = division.playoff_team_count if division and division.playoff_team_count else 0
            if cutoff > len(entrants) or cutoff == 1:
                raise ScheduleError(
                    INVALID_PLAYOFF_CUTOFF,
                    f"Division '{name}' has playoff_team_count={cutoff} but {len(entrants)} teams; "
                    "a playoff needs between 2 and the division size.",
                )
            if cutoff:
                matches.extend(generate_playoff_bracket(div_id, cutoff, event.third_place_match))
        elif event.double_elimination:
            matches.extend(generate_double_elimination(div_id, entrants))
        else:
            matches.extend(generate_single_elimination(div_id, entrants, event.third_place_match))

    return GeneratedSchedule(matches=matches, seeding=seeding)
