"""Pytest fixtures shared by the matching tests.

Global test safety measures:
 - Drop any GAMEMATCH__* variables inherited from the shell so config tests
   start from the built-in defaults
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, List

import pytest


def pytest_sessionstart(session):  # type: ignore[no-untyped-def]
    for key in [k for k in os.environ if k.startswith('GAMEMATCH__')]:
        del os.environ[key]


@pytest.fixture
def mock_games() -> List[Dict[str, Any]]:
    """Four catalogue entries with every field populated."""
    return [
        {
            'id': 'game1',
            'title': 'Super Mario Bros',
            'description': 'Classic platform game with Mario',
            'tags': ['platform', 'action'],
        },
        {
            'id': 'game2',
            'title': 'Pac-Man Championship',
            'description': 'Classic arcade game with Pac-Man',
            'tags': ['arcade', 'classic'],
        },
        {
            'id': 'game3',
            'title': 'Tetris Block Puzzle',
            'description': 'Classic block puzzle game',
            'tags': ['puzzle', 'block'],
        },
        {
            'id': 'game4',
            'title': 'Super Mario World',
            'description': 'Advanced Mario platform game',
            'tags': ['platform', 'action', 'adventure'],
        },
    ]


@pytest.fixture
def title_only_games() -> List[Dict[str, Any]]:
    """Entries with only a title, so the title score is the whole score."""
    return [
        {'id': 't1', 'title': 'Super Mario Bros'},
        {'id': 't2', 'title': 'Tetris Block Puzzle'},
        {'id': 't3', 'title': 'Pac-Man Championship'},
    ]


@pytest.fixture
def candidates_file(tmp_path: Path, mock_games) -> Path:
    """mock_games written as a JSON candidate file for CLI tests."""
    path = tmp_path / 'games.json'
    path.write_text(json.dumps(mock_games), encoding='utf-8')
    return path
