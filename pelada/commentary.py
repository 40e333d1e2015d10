"""
================================================================================
COMMENTARY (TEXT GENERATION)
================================================================================

Purpose: Cosmetic narrator lines (best/worst of the match, team draw, badge
unlocks, feed replies, player dossiers) produced by an OpenAI-compatible
chat-completions endpoint.

IMPORTANT: Commentary must never block a vote or a session transition. Every
failure (no API key, network error, bad payload) is logged and replaced by a
static fallback line.
================================================================================
"""

import logging

import requests

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "Você é o narrador oficial do FUT DOS PERNAS DE PAU, uma pelada de várzea. "
    "Estilo: gíria de quebrada, zoeira pesada, frases curtas, sem ofensas a grupos."
)

FALLBACK_TEXT = "O narrador foi buscar uma água e não voltou."
TEAM_DRAW_FALLBACK = "Sorteio feito."


class Commentator:
    """Thin client for the text-generation collaborator.

    Args:
        api_key (str): API key; an empty key disables generation.
        model (str): Chat model name.
        base_url (str): API root, e.g. ``https://api.openai.com/v1``.
        http: Object with a ``post`` method. Defaults to a ``requests.Session``.
        timeout (float): Request timeout in seconds.
    """

    def __init__(self, api_key, model="gpt-4o-mini", base_url="https://api.openai.com/v1",
                 http=None, timeout=15):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.openai_api_key, settings.openai_model, settings.openai_base_url)

    def generate(self, prompt: str, system: str = SYSTEM_INSTRUCTION, fallback: str = FALLBACK_TEXT) -> str:
        """Return generated text for ``prompt`` or ``fallback`` on any failure."""
        if not self.api_key:
            return fallback
        try:
            response = self.http.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            text = response.json()["choices"][0]["message"]["content"]
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Text generation failed, using fallback: {e}")
            return fallback
        return (text or "").strip() or fallback

    # === Prompts ===

    def best_player(self, name, position, stats):
        return self.generate(
            f"Exalte o MENOS PIOR DA PELADA. Jogador: {name}. Posição: {position}. "
            f"O que fez: {stats}. Máximo 3 frases."
        )

    def worst_player(self, name, errors):
        return self.generate(f"Zoe o PIOR DA PELADA. Jogador: {name}. Vacilos: {errors}. Máximo 2 frases.")

    def team_draw(self, teams: dict):
        lines = "\n".join(f"Time {letter}: {', '.join(names)}" for letter, names in teams.items())
        return self.generate(
            f"Narre o sorteio dos times.\n{lines}\nDiga qual vai brigar e qual é horrível.",
            fallback=TEAM_DRAW_FALLBACK,
        )

    def badge_unlock(self, name, badge_name):
        return self.generate(f"O jogador {name} desbloqueou a medalha: {badge_name}. Zoe ele.")

    def feed_reply(self, message, author_name):
        return self.generate(f'{author_name} falou no grupo: "{message}". Responda na lata.')

    def player_dossier(self, name, stats, moral_score, events=None):
        if moral_score > 75:
            task = "Escreva uma exaltação suprema, chamando de craque e ídolo."
        else:
            task = "Escreva um dossiê zoando o estilo de jogo dele."
        return self.generate(
            f"Analise o jogador {name}. Estatísticas: {stats}. "
            f"Atos da semana: {events or 'Nenhum registrado.'} {task} Máximo 40 palavras."
        )
