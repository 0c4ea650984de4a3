# tests/integration/conftest.py — v2
"""Shared fixtures for integration tests.

Builds a small multi-file corpus of synthetic round-robin events on disk.
No network or containers are involved; everything lives under tmp_path.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

RESULTS = ("1-0", "1/2-1/2", "0-1")

SPRING = ["Alpha, Anna", "Bravo, Boris", "Charlie, Chen", "Delta, Dora", "Echo, Emil", "Foxtrot, Fay"]
AUTUMN = ["Alpha, Anna", "Golf, Gina", "Hotel, Hugo", "India, Ivan", "Juliet, Jana"]
WINTER = ["Bravo, Boris", "Kilo, Karl", "Lima, Lena", "Mike, Mona"]


@pytest.fixture
def round_robin(make_game) -> Callable[..., list[str]]:
    """Factory: round_robin(event, year, players, rounds=1) -> list of PGN games.

    Every pair meets once per round, colours swap on odd rounds, and results
    cycle through win/draw/loss by pairing index.
    """

    def _build(event: str, year: int, players: list[str], rounds: int = 1) -> list[str]:
        games: list[str] = []
        day = 0
        for r in range(rounds):
            for i, first in enumerate(players):
                for j in range(i + 1, len(players)):
                    second = players[j]
                    white, black = (first, second) if r % 2 == 0 else (second, first)
                    games.append(make_game(
                        white=white,
                        black=black,
                        result=RESULTS[(i + j + r) % 3],
                        event=event,
                        site="Testville",
                        date=f"{year}.{1 + day // 28:02d}.{1 + day % 28:02d}",
                        round=f"{r + 1}.{i + 1}",
                        ECO=f"C{(i * 7 + j) % 100:02d}",
                        WhiteElo=2400 + 10 * len(white),
                        BlackElo=2400 + 10 * len(black),
                    ))
                    day += 1
        return games

    return _build


@pytest.fixture
def synthetic_corpus(round_robin, write_pgn) -> int:
    """Three files (one in a sub-directory) plus noise; returns the game count."""
    spring = round_robin("Spring Open 2019", 2019, SPRING, rounds=2)
    autumn = round_robin("Autumn Cup 2020", 2020, AUTUMN)
    winter = round_robin("Winter Match", 2021, WINTER)
    write_pgn("2019.pgn", ["; exported by hand\n\n", *spring])
    # Broken tag inside the header block of the sixth game.
    broken = autumn[5].replace("[Result", "[Annotator broken\n[Result", 1)
    write_pgn("2020.pgn", [*autumn[:5], broken, *autumn[6:]])
    write_pgn("sub/2021.pgn", winter)
    write_pgn("notes.txt", ["not a pgn file"])
    return len(spring) + len(autumn) + len(winter)
