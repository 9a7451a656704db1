"""
Coach chat: explains the puzzle's correct move through a language model.

The model is told the correct answer so it explains rather than guesses.
Every failure path still returns a usable hint.
"""

import os
from typing import Optional

import requests

from trainer.constants import (
    OPENAI_CHAT_URL,
    OPENAI_DEFAULT_MODEL,
    COACH_MAX_TOKENS,
    COACH_TEMPERATURE,
    COACH_TIMEOUT,
)

SYSTEM_PROMPT = ("You are an expert chess coach. You always have the correct answer "
                 "and explain chess tactics clearly to help students learn.")

GENERIC_HINT = ("Error occurred, but try looking for tactical patterns like checks, "
                "captures, and threats.")


def build_coach_prompt(fen: str, solution_move: str, question: str = None,
                       user_move: str = None, puzzle_type: str = None,
                       move_number: int = None) -> str:
    """Build the user prompt sent to the model."""
    lines = [
        "You are a chess coach explaining a tactical puzzle to a student.",
        "",
        f"Position (FEN): {fen}",
        f"Puzzle Type: {puzzle_type or 'tactical puzzle'}",
        f"Correct Answer: {solution_move}",
    ]
    if user_move:
        lines.append(f"Student is considering: {user_move}")
    if move_number:
        lines.append(f"This is move {move_number} in the solution")
    lines += [
        "",
        f'Student asks: "{question or "What is the best move?"}"',
        "",
        "Your job:",
        f"1. Confirm that {solution_move} is indeed the best move",
        "2. Explain WHY this move works (what tactical theme it uses)",
        "3. Show what happens after this move",
        f"4. If the student suggested a different move, explain why {solution_move} is better",
        "",
    ]
    if user_move and user_move != solution_move:
        lines.append(f"The student suggested {user_move}, but the correct answer is "
                     f"{solution_move}. Explain why {solution_move} is superior.")
    else:
        lines.append(f"Explain why {solution_move} is the key move in this position.")
    lines += [
        "",
        "Focus on the tactical pattern (fork, pin, skewer, discovered attack, etc.) "
        "and be educational.",
    ]
    return "\n".join(lines)


class CoachClient:
    """HTTP client for the chat-completions endpoint."""

    def __init__(self, api_key: str = None, model: str = None, url: str = OPENAI_CHAT_URL,
                 timeout: float = COACH_TIMEOUT, session: requests.Session = None):
        self.api_key = api_key if api_key is not None else os.getenv('OPENAI_API_KEY')
        self.model = model or os.getenv('OPENAI_MODEL') or OPENAI_DEFAULT_MODEL
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def ask(self, fen: str, solution_move: Optional[str], question: str = None,
            user_move: str = None, puzzle_type: str = None,
            move_number: int = None) -> dict:
        """
        Ask the coach about a position.

        Returns a dict with success, hint, bestMove and explanation keys.
        """
        best = solution_move or 'Unknown'
        if not self.api_key:
            return {
                'success': True,
                'hint': f"The best move is {solution_move or 'unknown'}. "
                        "OpenAI API key needed for detailed explanation.",
                'bestMove': best,
                'explanation': 'API configuration needed',
            }

        prompt = build_coach_prompt(fen, solution_move, question, user_move,
                                    puzzle_type, move_number)
        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': prompt},
            ],
            'max_tokens': COACH_MAX_TOKENS,
            'temperature': COACH_TEMPERATURE,
        }
        try:
            resp = self.session.post(
                self.url,
                json=payload,
                headers={'Authorization': f'Bearer {self.api_key}'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            print(f"  Coach API error: {e}")
            return {
                'success': True,
                'hint': GENERIC_HINT,
                'bestMove': best,
                'explanation': 'API temporarily unavailable',
            }

        if not resp.ok:
            print(f"  Coach API error: HTTP {resp.status_code}: {resp.text[:200]}")
            return {
                'success': True,
                'hint': f"The best move is {solution_move}. This appears to be a "
                        f"{puzzle_type or 'tactical'} puzzle.",
                'bestMove': best,
                'explanation': f"Best move: {solution_move}",
            }

        try:
            data = resp.json()
            explanation = data['choices'][0]['message']['content']
        except (ValueError, KeyError, IndexError, TypeError):
            explanation = None
        explanation = explanation or f"The best move is {solution_move}"

        return {
            'success': True,
            'hint': explanation,
            'bestMove': best,
            'puzzleType': puzzle_type,
            'explanation': explanation,
            'method': 'Solution-guided analysis',
        }
