"""
================================================================================
BADGES
================================================================================

Purpose: Badge catalog shown on profiles, and the automatic badges granted
when a player's stats (goals, assists, matches played) cross a threshold.
================================================================================
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from pelada.players import PLAYERS_TABLE

logger = logging.getLogger(__name__)

NEWCOMER_BADGE = "b1"
FOUNDER_BADGE = "f1"


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    icon: str
    description: str
    category: str


ALL_BADGES = [
    # Geral
    Badge("b1", "Chegou Agora", "👶", "Acabou de chegar. Fica esperto.", "Geral"),
    Badge("b9", "Sobrevivente", "💀", "Jogou a primeira e voltou inteiro.", "Geral"),
    Badge("b2", "Sócio da Boca", "🖐️", "5 peladas no currículo.", "Geral"),
    Badge("b3", "Procurado", "🚔", "Sumiu e ninguém sabe pra onde.", "Geral"),
    Badge("b4", "Zumbi", "🧟", "Voltou das cinzas.", "Geral"),
    Badge("b5", "Pulmão de Filtro", "🚬", "Não corre 2 metros.", "Geral"),
    Badge("b6", "Perna de Pau", "🪵", "É ruim com força.", "Geral"),
    Badge("b7", "Dono da Várzea", "👑", "100 jogos.", "Geral"),
    Badge("b8", "Chorão", "😭", "Reclama de tudo.", "Geral"),
    # Linha
    Badge("l1", "Fominha", "🤬", "Não toca a bola.", "Linha"),
    Badge("l2", "Garçom do Adversário", "🤵", "Só dá passe pro outro time.", "Linha"),
    Badge("l3", "Inacreditável", "🤦", "Errou gol sem goleiro.", "Linha"),
    Badge("l4", "Pé de Pantufa", "🧸", "Chuta igual criança.", "Linha"),
    Badge("l5", "Caneleiro", "🪓", "Se a bola passar, o jogador fica.", "Linha"),
    Badge("l6", "Corre Errado", "🏃", "Barata tonta em campo.", "Linha"),
    # Goleiro
    Badge("g1", "Paredão", "🧱", "Pegou tudo.", "Goleiro"),
    Badge("g2", "Mão de Quiabo", "🥬", "A bola escorrega.", "Goleiro"),
    Badge("g3", "Chama Gol", "🐔", "Todo chute é gol.", "Goleiro"),
    Badge("g4", "Goleiro Linha", "🤡", "Acha que sabe jogar com o pé.", "Goleiro"),
    # Elite
    Badge("h1", "Bola de Ouro", "🏆", "O melhor da pelada.", "Elite"),
    Badge("h2", "Artilheiro", "🔫", "Mata o jogo.", "Elite"),
    Badge("h3", "Goleiro de Aluguel", "🧤", "Digno de ser pago pra jogar.", "Elite"),
    # Honra
    Badge("f1", "Fundador da Pelada", "🏛️", "Um dos pais desta pelada.", "Honra"),
    # Stats
    Badge("g1a", "Primeiro Gol", "⚽", "Balançou a rede pela primeira vez.", "Stats"),
    Badge("g10", "10 Gols", "🥅", "Dez gols marcados.", "Stats"),
    Badge("g50", "50 Gols", "🎯", "Cinquenta gols marcados.", "Stats"),
    Badge("g100", "100 Gols", "💯", "Cem gols marcados.", "Stats"),
    Badge("a1", "Primeira Assistência", "🅰️", "Serviu o primeiro gol.", "Stats"),
    Badge("a10", "10 Assistências", "🎁", "Dez assistências.", "Stats"),
    Badge("a50", "50 Assistências", "🧠", "Cinquenta assistências.", "Stats"),
    Badge("pres1", "Estreia", "1️⃣", "Primeira pelada.", "Stats"),
    Badge("pres2", "Frequente", "5️⃣", "5 peladas.", "Stats"),
    Badge("pres3", "Assíduo", "🔟", "10 peladas.", "Stats"),
    Badge("pres4", "Veterano", "📅", "20 peladas.", "Stats"),
    Badge("pres5", "Lenda", "🏟️", "50 peladas.", "Stats"),
    Badge("pres6", "Patrimônio", "🗿", "100 peladas.", "Stats"),
    Badge("pres26", "Imortal", "♾️", "200 peladas.", "Stats"),
]

BADGES_BY_ID = {b.id: b for b in ALL_BADGES}

# stat attribute -> [(threshold, badge id)]
STATS_BADGE_MAP = {
    "goals": [(1, "g1a"), (10, "g10"), (50, "g50"), (100, "g100")],
    "assists": [(1, "a1"), (10, "a10"), (50, "a50")],
    "matches_played": [
        (1, "pres1"), (5, "pres2"), (10, "pres3"), (20, "pres4"),
        (50, "pres5"), (100, "pres6"), (200, "pres26"),
    ],
}


def get_badge(badge_id) -> Optional[Badge]:
    return BADGES_BY_ID.get(badge_id)


def badges_earned(player) -> List[str]:
    """Badge ids the player's stats qualify for but does not hold yet."""
    owned = set(player.badges)
    earned = []
    for stat, rules in STATS_BADGE_MAP.items():
        value = getattr(player, stat, 0) or 0
        for threshold, badge_id in rules:
            if value >= threshold and badge_id not in owned:
                earned.append(badge_id)
    return earned


def assign_stat_badges(conn, player) -> Optional[List[str]]:
    """Persist newly earned stat badges.

    Returns:
        Optional[List[str]]: The full new badge list, or None when nothing
            changed or the update failed (failures are logged).
    """
    earned = badges_earned(player)
    if not earned:
        return None
    new_badges = list(player.badges) + earned
    try:
        conn.table(PLAYERS_TABLE).update({"badges": new_badges}).eq("id", player.id).execute()
    except Exception as e:
        logger.error(f"Error assigning automatic badges to {player.id}: {e}")
        return None
    return new_badges
