"""Team draw for the confirmed starters."""

import string

from pelada.errors import NotEnoughPlayers


def draw_teams(players, team_count: int = 3, minimum: int = 9) -> dict:
    """Split players into balanced teams by moral score.

    Players are ranked by moral score (highest first) and dealt in snake
    order, so with three teams the picks go A, B, C, C, B, A, A, B, ...

    Args:
        players (list[Player]): Confirmed starters.
        team_count (int): Number of teams. Defaults to 3.
        minimum (int): Fewest players allowed for a draw. Defaults to 9.

    Returns:
        dict: Team letter -> list of nicknames, e.g. ``{"A": [...], ...}``.

    Raises:
        NotEnoughPlayers: If fewer than ``minimum`` players are given.
    """
    players = list(players)
    if len(players) < minimum:
        raise NotEnoughPlayers(len(players), minimum)

    letters = string.ascii_uppercase[:team_count]
    teams = {letter: [] for letter in letters}
    ranked = sorted(players, key=lambda p: p.moral_score or 0, reverse=True)
    for index, player in enumerate(ranked):
        cycle, position = divmod(index, team_count)
        if cycle % 2:
            position = team_count - 1 - position
        teams[letters[position]].append(player.nickname)
    return teams
